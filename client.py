"""Async HTTP client for the slide API.

Mirrors the server's failure tiers: planning falls back to the server's
default plan when one is offered, a failed slide becomes a placeholder and a
failed remix leaves the original HTML in place.
"""
import logging
from typing import List, Optional

import httpx
from pydantic import ValidationError

from config import get_settings
from slide_html import error_slide_html
from slide_schema import PlanFailure, PlanItem

logger = logging.getLogger(__name__)

NETWORK_ERROR_HINT = "请检查网络连接。"


class PlanningError(Exception):
    """The plan request failed and the server offered no fallback."""


class SlideApiClient:
    def __init__(self, base_url: Optional[str] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None,
                 timeout: Optional[float] = None):
        settings = get_settings()
        self.base_url = base_url or settings.api_base_url
        # slide generation routinely outlasts httpx's 5s default
        self.timeout = timeout if timeout is not None else settings.api_timeout
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            transport=transport,
            timeout=httpx.Timeout(self.timeout),
        )

    async def __aenter__(self) -> "SlideApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def plan(self, script: str) -> List[PlanItem]:
        try:
            resp = await self._client.post("/api/plan", json={"script": script})
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise PlanningError(f"Plan request failed: {e}") from e

        if resp.is_success:
            try:
                return [PlanItem.model_validate(item) for item in data]
            except (TypeError, ValidationError) as e:
                raise PlanningError(f"Malformed plan response: {e}") from e

        logger.error("Plan API error %s: %s", resp.status_code, data)
        try:
            failure = PlanFailure.model_validate(data)
        except ValidationError as e:
            raise PlanningError(f"Plan failed with status {resp.status_code}") from e
        logger.warning("Using fallback plan (%d slides)", len(failure.fallback))
        return failure.fallback

    async def generate_slide(self, full_script: str, item: PlanItem) -> str:
        try:
            resp = await self._client.post(
                "/api/slide",
                json={"fullScript": full_script, "context": item.model_dump()},
            )
            # error responses still carry a placeholder slide
            html = resp.json()["html"]
        except (httpx.HTTPError, ValueError, KeyError, TypeError):
            logger.exception("Error generating slide %r", item.phase)
            return error_slide_html(hint=NETWORK_ERROR_HINT)
        if not isinstance(html, str):
            logger.error("Slide %r came back without HTML (status %s)", item.phase, resp.status_code)
            return error_slide_html()
        return html

    async def remix(self, original_html: str, direction: str) -> str:
        try:
            resp = await self._client.post(
                "/api/remix",
                json={"originalHtml": original_html, "direction": direction},
            )
            html = resp.json()["html"]
        except (httpx.HTTPError, ValueError, KeyError, TypeError):
            logger.exception("Error remixing slide")
            return original_html
        if not isinstance(html, str):
            logger.error("Remix came back without HTML (status %s)", resp.status_code)
            return original_html
        return html
