"""
Client du backend génératif (API Gemini generateContent / countTokens).

Un seul chemin de code, deux modes selon `schema_enforced` :
- contraint : le schéma est transmis au backend (responseSchema), une seule
  tentative, toute erreur remonte telle quelle ;
- best-effort : le schéma est décrit dans le prompt, et la requête est
  relancée jusqu'à `max_attempts` fois si le transport, le JSON ou la
  validation échoue, puis GenerationExhausted.
La validation locale tourne dans les deux modes.
"""
import copy
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import httpx

from app.core.errors import (
    AppError,
    GenerationExhausted,
    InvalidJson,
    MalformedEnvelope,
    OutputValidationError,
    SchemaViolation,
    UpstreamError,
    UpstreamRejected,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-2.5-flash-lite"

_FENCE_RE = re.compile(r"^\s*```[a-zA-Z0-9_-]*\s*\n?(.*?)\n?\s*```\s*$", re.DOTALL)

Validator = Callable[[Any], bool]


@dataclass
class GenerationResult:
    envelope: Dict[str, Any]
    data: Dict[str, Any]
    attempts: int = 1


def strip_code_fences(text: str) -> str:
    """Retire un éventuel bloc ```json ... ``` autour du texte."""
    m = _FENCE_RE.match(text or "")
    return (m.group(1) if m else (text or "")).strip()


def extract_payload_text(envelope: Any) -> str:
    """Renvoie candidates[0].content.parts[0].text, ou MalformedEnvelope."""
    try:
        text = envelope["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        raise MalformedEnvelope("Invalid response format from API") from None
    if not isinstance(text, str) or not text:
        raise MalformedEnvelope("Invalid response format from API")
    return text


def parse_payload(text: str) -> Any:
    try:
        return json.loads(strip_code_fences(text))
    except json.JSONDecodeError as e:
        raise InvalidJson(f"Failed to parse API response as JSON: {e}") from e


class GenerationClient:
    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        schema_enforced: bool = True,
        max_attempts: int = 3,
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.schema_enforced = schema_enforced
        self.max_attempts = max(1, max_attempts)
        self.timeout = timeout
        self._transport = transport

    # ---------- public API ----------

    async def generate(
        self,
        prompt: str,
        schema: Dict[str, Any],
        validator: Validator,
        source_text: Optional[str] = None,
    ) -> GenerationResult:
        body = self._generate_body(prompt, schema, source_text)
        attempts = 1 if self.schema_enforced else self.max_attempts
        mode = "schema" if self.schema_enforced else "best-effort"

        last_error: Optional[AppError] = None
        for attempt in range(1, attempts + 1):
            logger.info("generateContent model=%s mode=%s tentative=%d/%d", self.model, mode, attempt, attempts)
            try:
                envelope = await self._post("generateContent", body)
                text = extract_payload_text(envelope)
                data = parse_payload(text)
                if not validator(data):
                    raise SchemaViolation("Response does not match expected schema")
            except (UpstreamError, OutputValidationError) as e:
                if self.schema_enforced:
                    raise
                last_error = e
                logger.warning("Tentative %d/%d rejetée (%s): %s", attempt, attempts, type(e).__name__, e.message)
                continue

            return GenerationResult(envelope=self._normalized(envelope, data), data=data, attempts=attempt)

        logger.error("Génération abandonnée après %d tentatives", attempts)
        raise GenerationExhausted(attempts, last_error)

    async def count_tokens(self, source_text: str) -> int:
        data = await self._post("countTokens", {"contents": [{"parts": [{"text": source_text or ""}]}]})
        if not isinstance(data, dict):
            raise MalformedEnvelope("Invalid countTokens response from API")
        try:
            return int(data.get("totalTokens") or 0)
        except (TypeError, ValueError):
            raise MalformedEnvelope("Invalid countTokens response from API") from None

    # ---------- internals ----------

    def _generate_body(self, prompt: str, schema: Dict[str, Any], source_text: Optional[str]) -> Dict[str, Any]:
        text = prompt
        if not self.schema_enforced:
            text += "\n\nRespond with a single JSON object matching this schema:\n" + json.dumps(schema)
        if source_text is not None:
            text += f"\n\nDocument Content:\n{source_text}"

        config: Dict[str, Any] = {"responseMimeType": "application/json"}
        if self.schema_enforced:
            config["responseSchema"] = schema

        return {"contents": [{"parts": [{"text": text}]}], "generationConfig": config}

    @staticmethod
    def _normalized(envelope: Dict[str, Any], data: Any) -> Dict[str, Any]:
        # le texte renvoyé au client doit être du JSON nu (sans fences)
        out = copy.deepcopy(envelope)
        out["candidates"][0]["content"]["parts"][0]["text"] = json.dumps(data, ensure_ascii=False)
        return out

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self._transport)

    async def _post(self, action: str, payload: Dict[str, Any]) -> Any:
        url = f"/models/{self.model}:{action}"
        headers = {"Content-Type": "application/json", "x-goog-api-key": self.api_key}
        try:
            async with self._client() as client:
                resp = await client.post(url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.error("Gemini injoignable (%s): %s", action, e)
            raise UpstreamError(f"Gemini API unreachable: {e}") from e

        if not resp.is_success:
            try:
                err_body: Any = resp.json()
            except ValueError:
                err_body = resp.text
            logger.error("Gemini API error %s (%s): %s", resp.status_code, action, err_body)
            raise UpstreamRejected(resp.status_code, err_body)

        try:
            return resp.json()
        except ValueError as e:
            raise MalformedEnvelope(f"Gemini response is not JSON: {e}") from e
