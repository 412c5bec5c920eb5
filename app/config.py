from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # storage
    database_url: str = "sqlite:///./data/dryrun.db"
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout_s: int = 30
    db_pool_recycle_s: int = 1800
    screenshots_path: str = "./data/screenshots"

    # decision oracle
    llm_provider: str = "openai"
    llm_model: str = "gpt-4o-mini"  # safe default- override via env
    openai_api_key: str | None = None
    llm_temperature: float = 0.2
    llm_timeout_s: int = 60

    # tracing (optional)
    langsmith_tracing: bool = False
    langsmith_api_key: str | None = None
    langsmith_project: str = "dryrun"
    langsmith_endpoint: str = "https://api.smith.langchain.com"

    # browser
    browser_headless: bool = True
    browser_navigation_timeout_ms: int = 30000

    # run loop
    max_steps: int = 50
    step_delay_s: float = 1.0
    stream_teardown_grace_s: float = 5.0
    max_active_runs: int = 1

    # observability / http
    log_level: str = "INFO"
    log_json: bool = False
    cors_allow_origins: list[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def DATABASE_URL(self) -> str:
        return self.database_url

    @property
    def LLM_MODEL(self) -> str:
        return self.llm_model


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader (process-level).
    """
    return Settings()
