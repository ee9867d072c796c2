import json
import logging
import re
from typing import TypeVar

from openai import AsyncOpenAI
from pydantic import BaseModel, ValidationError

from app.core.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

JSON_ONLY_INSTRUCTIONS = (
    "CRITICAL: You must respond in ONLY valid JSON format matching the following JSON Schema. "
    "Do not include markdown code blocks (```json) or any conversational text around the JSON."
)
RETRY_INSTRUCTIONS = (
    "RETRY INSTRUCTIONS: Your previous response was invalid or incomplete. "
    "Return ONLY a single JSON object matching the schema. "
    "Do not add any prose, headings, markdown fences, or explanations."
)


def _fenced_block(text: str) -> str | None:
    blocks = re.findall(r"```(?:json)?\s*(.*?)\s*```", text, re.DOTALL | re.IGNORECASE)
    return blocks[0].strip() if blocks else None


def _balanced_object_span(text: str) -> str | None:
    """First balanced top-level JSON object in `text`, ignoring braces inside strings."""
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escape = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return None


def parse_candidates(raw_text: str | None) -> list[str]:
    """Possible JSON payloads hidden in a model reply, most likely first."""
    text = (raw_text or "").strip()
    if not text:
        return []

    candidates: list[str] = []
    fenced = _fenced_block(text)
    if fenced:
        candidates.append(fenced)
    candidates.append(text)
    balanced = _balanced_object_span(text)
    if balanced:
        candidates.append(balanced)

    # Some models prefix the object with a bare "json" token.
    if text.lower().startswith("json"):
        trimmed = text[4:].lstrip(": \n\r\t")
        if trimmed:
            candidates.append(trimmed)

    return list(dict.fromkeys(c.strip() for c in candidates if c.strip()))


class LLMClient:
    """Structured generation against any OpenAI-compatible chat completions endpoint."""

    def __init__(
        self,
        model_name: str | None = None,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
    ):
        self.model_name = model_name or settings.MODEL_DEFAULT

        # LLM_API_KEY wins, GEMINI_API_KEY covers the default Gemini endpoint.
        resolved_api_key = api_key or settings.LLM_API_KEY or settings.GEMINI_API_KEY
        resolved_base_url = base_url or settings.LLM_BASE_URL

        self.client = AsyncOpenAI(
            base_url=resolved_base_url,
            api_key=resolved_api_key,
            timeout=timeout or settings.LLM_TIMEOUT_SECONDS,
            max_retries=0,
        )

    async def generate_structured(
        self,
        system_prompt: str,
        user_prompt: str,
        response_schema: type[T],
        *,
        max_attempts: int = 1,
        temperature: float = 0.2,
    ) -> T:
        """
        Generate a response and validate it against `response_schema`.

        The schema is injected into the system prompt. Raises ValueError when the
        reply is empty or no candidate payload validates; transport errors from
        the provider propagate unchanged.
        """
        schema_json = json.dumps(response_schema.model_json_schema())
        augmented_system_prompt = (
            f"{system_prompt}\n\n{JSON_ONLY_INSTRUCTIONS}\n\nEXPECTED SCHEMA:\n{schema_json}"
        )

        for attempt_idx in range(1, max_attempts + 1):
            system_prompt_attempt = augmented_system_prompt
            if attempt_idx > 1:
                system_prompt_attempt = f"{augmented_system_prompt}\n\n{RETRY_INSTRUCTIONS}"

            logger.info(
                "Issuing structured request to model %s (attempt %s/%s)...",
                self.model_name,
                attempt_idx,
                max_attempts,
            )
            response = await self.client.chat.completions.create(
                model=self.model_name,
                messages=[
                    {"role": "system", "content": system_prompt_attempt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=0 if attempt_idx > 1 else temperature,
            )

            try:
                return self._parse_response(response, response_schema)
            except ValueError as e:
                if attempt_idx < max_attempts:
                    logger.warning(
                        "Structured parsing failed for %s on attempt %s/%s: %s. Retrying...",
                        self.model_name,
                        attempt_idx,
                        max_attempts,
                        e,
                    )
                    continue
                logger.error("Error parsing structured LLM response from %s: %s", self.model_name, e)
                raise

        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

    def _parse_response(self, response, response_schema: type[T]) -> T:
        if not getattr(response, "choices", None):
            logger.error("Received no choices from %s: %s", self.model_name, response)
            raise ValueError(f"Provider {self.model_name} returned no output.")

        text_response = response.choices[0].message.content or ""
        candidates = parse_candidates(text_response)
        if not candidates:
            raise ValueError("Model returned empty content for structured response")

        parse_errors: list[str] = []
        for candidate in candidates:
            try:
                parsed_data = json.loads(candidate, strict=False)
                return response_schema.model_validate(parsed_data)
            except (json.JSONDecodeError, ValidationError) as candidate_error:
                parse_errors.append(str(candidate_error))
        raise ValueError(
            "Unable to parse structured response after candidate extraction: "
            + " | ".join(parse_errors[:3])
        )
