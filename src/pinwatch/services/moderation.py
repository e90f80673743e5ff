# src/pinwatch/services/moderation.py
"""Content classification for free-text report details."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from pinwatch.core.settings import settings

logger = logging.getLogger(__name__)

HTTP_OK = 200

SYSTEM_PROMPT = (
    "You are a content moderator for a community safety reporting site. "
    "Reply with exactly 'true' if the user's text contains hateful, abusive, "
    "threatening or profane language, or targets a person or group. "
    "Reply with exactly 'false' otherwise."
)


@dataclass(frozen=True)
class ModerationVerdict:
    flagged: bool


class ContentModerator(Protocol):
    async def classify(self, text: str) -> ModerationVerdict: ...


class OpenAIModerator:
    """ContentModerator backed by an OpenAI chat-completions model.

    Failure policy is fail-open: a missing key, timeout, transport error,
    non-2xx status or unreadable reply logs a warning and returns
    ``flagged=False`` so a provider outage never blocks reporting. Text
    longer than ``max_input_length`` is flagged without a provider call.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        max_input_length: int | None = None,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.openai_api_key
        self.model = model or settings.moderation_model
        self.base_url = (base_url or settings.openai_base_url).rstrip("/")
        self.max_input_length = max_input_length or settings.moderation_max_input_length
        self.timeout_seconds = timeout_seconds or settings.moderation_timeout_seconds
        self._transport = transport

    def _payload(self, text: str) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": text},
            ],
            "temperature": 0.1,
            "max_tokens": 100,
        }

    async def classify(self, text: str) -> ModerationVerdict:
        if not text or not text.strip():
            return ModerationVerdict(flagged=False)
        if len(text) > self.max_input_length:
            logger.info("Flagging text over %s characters without classification", self.max_input_length)
            return ModerationVerdict(flagged=True)
        if not self.api_key:
            logger.warning("Moderation API key not configured; allowing text unclassified")
            return ModerationVerdict(flagged=False)

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout_seconds),
                transport=self._transport,
            ) as client:
                response = await client.post(
                    "/chat/completions",
                    json=self._payload(text),
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
        except httpx.HTTPError as exc:
            logger.warning("Moderation request failed: %s", exc)
            return ModerationVerdict(flagged=False)

        if response.status_code != HTTP_OK:
            logger.warning("Moderation provider returned HTTP %s", response.status_code)
            return ModerationVerdict(flagged=False)

        try:
            answer = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError):
            logger.warning("Moderation provider returned an unreadable body")
            return ModerationVerdict(flagged=False)

        return ModerationVerdict(flagged=str(answer).strip().lower() == "true")


class _ModeratorSingleton:
    """Singleton wrapper for OpenAIModerator."""

    _instance: OpenAIModerator | None = None

    @classmethod
    def get_instance(cls) -> OpenAIModerator:
        if cls._instance is None:
            cls._instance = OpenAIModerator()
        return cls._instance


def get_content_moderator() -> ContentModerator:
    """Return the configured content moderator."""
    return _ModeratorSingleton.get_instance()
