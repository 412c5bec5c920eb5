from __future__ import annotations

import os
from uuid import UUID, uuid4

URL_PREFIX = "/screenshots"


class ScreenshotStore:
    """Maps a (run, shot) pair to a file on disk and to the URL it is served from."""

    def __init__(self, base_path: str) -> None:
        self.base_path = base_path

    def ensure_directories(self) -> None:
        os.makedirs(self.base_path, exist_ok=True)

    def new_id(self) -> str:
        return uuid4().hex

    def path_for(self, run_id: UUID | str, shot_id: str) -> str:
        return os.path.join(self.base_path, str(run_id), f"{shot_id}.png")

    def url_for(self, run_id: UUID | str, shot_id: str) -> str:
        return f"{URL_PREFIX}/{run_id}/{shot_id}.png"


def get_screenshot_store() -> ScreenshotStore:
    from app.config import get_settings

    return ScreenshotStore(get_settings().screenshots_path)
