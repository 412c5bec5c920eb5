from __future__ import annotations

import json
import logging
from typing import Any, Dict, Sequence

from pydantic import ValidationError

from app.contracts.decision import Decision
from app.contracts.page_state import PageState
from app.contracts.recommendation import Recommendation, fallback_recommendation
from app.core.context import get_run_id
from llm.prompts import build_decision_prompt, build_recommendations_prompt
from personas.types import Persona

logger = logging.getLogger(__name__)

FALLBACK_TITLE = "Review and address friction points"
FALLBACK_DESCRIPTION = "Review the friction points identified during testing and address them."


class LLMClient:
    def __init__(
        self,
        *,
        model: str | None = None,
        provider: str | None = None,
        api_key: str | None = None,
        temperature: float = 0.0,
        timeout_s: int = 30,
    ) -> None:
        self.model = model
        self.provider = provider
        self.api_key = api_key
        self.temperature = temperature
        self.timeout_s = timeout_s

    def decide_next_action(
        self,
        *,
        goal: str,
        persona: Persona,
        page_state: PageState,
        history: Sequence[Any],
        screenshot_b64: str | None = None,
    ) -> Decision:
        """
        Ask the persona what to do next.

        Provider errors propagate. A response that cannot be parsed comes back
        as a `stuck` decision instead.
        """
        prompt = build_decision_prompt(goal=goal, persona=persona, page_state=page_state, history=history)
        raw_text = self._call_provider(prompt=prompt, image_b64=screenshot_b64, call_name="decide_next_action")
        return self.parse_decision(raw_text)

    def generate_recommendations(
        self,
        *,
        goal: str,
        persona: Persona,
        events: Sequence[Any],
        friction_points: Sequence[Any],
    ) -> list[Recommendation]:
        prompt = build_recommendations_prompt(
            goal=goal, persona=persona, events=events, friction_points=friction_points
        )
        raw_text = self._call_provider(prompt=prompt, call_name="generate_recommendations")
        return self.parse_recommendations(raw_text, persona_id=persona.id)

    def parse_decision(self, text: str) -> Decision:
        try:
            parsed = self._parse_json(text)
            if not isinstance(parsed, dict):
                raise ValueError("decision is not a JSON object")
            action = dict(parsed.get("action") or {})
            action.setdefault("type", "stuck")
            if not action.get("reasoning"):
                action["reasoning"] = parsed.get("reasoning") or ""
            # the assessment is asked for beside the action, not inside it
            if "frictionAssessment" in parsed and "frictionAssessment" not in action:
                action["frictionAssessment"] = parsed["frictionAssessment"]
            return Decision.model_validate(
                {
                    "observation": parsed.get("observation") or "",
                    "reasoning": parsed.get("reasoning") or "",
                    "action": action,
                }
            )
        except (ValueError, ValidationError) as e:
            logger.warning("Failed to parse decision: %s", e)
            return Decision.stuck(
                observation="Failed to parse response",
                reasoning="Error parsing LLM output",
                action_reasoning="Could not understand the model response",
            )

    def parse_recommendations(self, text: str, *, persona_id: str) -> list[Recommendation]:
        try:
            parsed = self._parse_json(text)
            items = parsed.get("recommendations") if isinstance(parsed, dict) else parsed
            if not isinstance(items, list):
                raise ValueError("recommendations are not a JSON list")
            recommendations = []
            for item in items:
                if not isinstance(item, dict):
                    continue
                rec = Recommendation.model_validate(item)
                if not rec.affected_personas:
                    rec = rec.model_copy(update={"affected_personas": [persona_id]})
                recommendations.append(rec)
            if recommendations:
                return recommendations
        except (ValueError, ValidationError) as e:
            logger.warning("Failed to parse recommendations: %s", e)
        return [fallback_recommendation(persona_id, title=FALLBACK_TITLE, description=FALLBACK_DESCRIPTION)]

    def _call_provider(self, *, prompt: dict, image_b64: str | None = None, call_name: str = "llm_call") -> str:
        if self.provider == "openai":
            return self._call_openai(prompt=prompt, image_b64=image_b64, call_name=call_name)
        raise RuntimeError("LLM provider not configured")

    def _call_openai(self, *, prompt: dict, image_b64: str | None = None, call_name: str = "llm_call") -> str:
        if not self.api_key:
            raise RuntimeError("OPENAI_API_KEY is not set")
        try:
            from langchain_core.messages import HumanMessage, SystemMessage
            from langchain_openai import ChatOpenAI
        except Exception as e:
            raise RuntimeError(f"LangChain OpenAI client not available: {e}") from e

        if image_b64:
            human = HumanMessage(
                content=[
                    {"type": "text", "text": prompt["user"]},
                    {"type": "image_url", "image_url": {"url": f"data:image/png;base64,{image_b64}"}},
                ]
            )
        else:
            human = HumanMessage(content=prompt["user"])
        messages = [SystemMessage(content=prompt["system"]), human]

        def run_call(*, with_response_format: bool) -> str:
            logger.info(
                "LLM call start provider=openai model=%s response_format=%s image=%s",
                self.model or "gpt-4o-mini",
                with_response_format,
                bool(image_b64),
            )
            extra: dict[str, Any] = {}
            if with_response_format:
                extra["model_kwargs"] = {"response_format": {"type": "json_object"}}
            llm = ChatOpenAI(
                model=self.model or "gpt-4o-mini",
                temperature=self.temperature,
                timeout=self.timeout_s,
                api_key=self.api_key,
                **extra,
            )
            response = llm.invoke(messages, config={"run_name": call_name, "metadata": {"run_id": get_run_id()}})
            output_text = response.content
            if not output_text:
                raise RuntimeError("OpenAI returned empty content")
            if not isinstance(output_text, str):
                output_text = json.dumps(output_text)
            logger.info("LLM call success provider=openai output_len=%s", len(output_text))
            return output_text

        try:
            return run_call(with_response_format=True)
        except Exception as e:
            logger.warning("LLM call failed with response_format: %s", e)
            return run_call(with_response_format=False)

    def _parse_json(self, text: str) -> Dict[str, Any] | list:
        if not isinstance(text, str) or not text.strip():
            raise ValueError("LLM returned empty response")
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            for open_ch, close_ch in (("{", "}"), ("[", "]")):
                start = text.find(open_ch)
                end = text.rfind(close_ch)
                if start != -1 and end != -1 and end > start:
                    try:
                        return json.loads(text[start : end + 1])
                    except json.JSONDecodeError:
                        continue
            raise


def get_llm_client() -> LLMClient:
    from app.config import get_settings

    settings = get_settings()
    return LLMClient(
        model=settings.LLM_MODEL,
        provider=settings.llm_provider,
        api_key=settings.openai_api_key,
        temperature=settings.llm_temperature,
        timeout_s=settings.llm_timeout_s,
    )
