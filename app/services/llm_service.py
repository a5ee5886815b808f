"""
Pass-through relay to the configured chat-completion provider.

Two upstream profiles are fixed server side: the default one and ``v2``.
The caller only picks between them; URL, model and token cap never come
from the request.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from app.config import Settings
from app.errors import UpstreamError
from app.schemas.message import Message

logger = logging.getLogger(__name__)

DEFAULT_VERSION = "v1"


@dataclass(frozen=True)
class UpstreamProfile:
    url: str
    model: str
    max_tokens: Optional[int] = None


class LLMRelay:
    def __init__(
        self,
        api_key: str,
        profiles: dict[str, UpstreamProfile],
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_key = api_key
        self.profiles = profiles
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(
        cls, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "LLMRelay":
        profiles = {
            "v1": UpstreamProfile(
                url=settings.llm_v1_url,
                model=settings.llm_v1_model,
                max_tokens=settings.llm_v1_max_tokens,
            ),
            "v2": UpstreamProfile(url=settings.llm_v2_url, model=settings.llm_v2_model),
        }
        return cls(settings.llm_api_key, profiles, timeout=settings.llm_timeout, transport=transport)

    def resolve(self, api_version: Optional[str]) -> UpstreamProfile:
        """``v2`` selects the alternate upstream; anything else falls back to the default."""
        if api_version == "v2":
            return self.profiles["v2"]
        return self.profiles[DEFAULT_VERSION]

    @staticmethod
    def build_payload(profile: UpstreamProfile, message: Message) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": profile.model,
            "messages": [message.model_dump(include={"role", "content"})],
        }
        if profile.max_tokens:
            payload["max_tokens"] = profile.max_tokens
        return payload

    async def send(self, message: Message, api_version: Optional[str] = None) -> Any:
        """POST one message upstream and return the decoded JSON body unchanged."""
        if not self._api_key:
            raise UpstreamError("llm relay is not configured")

        profile = self.resolve(api_version)
        payload = self.build_payload(profile, message)
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout, connect=10.0),
            transport=self._transport,
        ) as client:
            try:
                resp = await client.post(profile.url, json=payload, headers=headers)
                resp.raise_for_status()
            except httpx.HTTPError as exc:
                logger.error("llm upstream %s (%s) failed: %s", profile.url, profile.model, exc)
                raise UpstreamError("llm upstream request failed") from exc

        try:
            body = resp.json()
        except ValueError as exc:
            logger.error("llm upstream %s returned undecodable body: %s", profile.url, exc)
            raise UpstreamError("llm upstream returned invalid JSON") from exc

        logger.info("relayed message to %s (%s) status=%s", profile.url, profile.model, resp.status_code)
        return body
