"""
Document AI Assistant — Anthropic Provider
===========================================

What:  LLMService implementation calling the Anthropic Messages API
       (POST {base}/v1/messages) directly with httpx.
Who:   Serves the tasks configured with provider "anthropic" (by default
       workspace chat and document classification).
"""

import logging
import time
import uuid
from typing import Any, Dict, Optional

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from docassist.config import settings
from docassist.exceptions import LLMServiceError, MalformedResponseError
from docassist.services.llm_base import LLMService

logger = logging.getLogger(__name__)


class AnthropicService(LLMService):
    name = "anthropic"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.anthropic_api_key
        # Tolerate a pasted endpoint such as https://api.anthropic.com/v1/messages
        raw = base_url or settings.anthropic_base_url
        self.base_url = raw.split("/v1")[0] if "/v1" in raw else raw.rstrip("/")
        self.model = model or settings.anthropic_model

    def _headers(self) -> Dict[str, str]:
        return {
            "x-api-key": self.api_key,
            "Content-Type": "application/json",
            "anthropic-version": settings.anthropic_version,
        }

    async def generate(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        max_tokens: int = 1000,
        temperature: float = 0.7,
        top_p: Optional[float] = None,
        top_k: Optional[int] = None,
        json_output: bool = False,
    ) -> str:
        # The Messages API has no JSON mode; callers put the schema in the prompt.
        request_id = uuid.uuid4().hex[:8]
        if not self.api_key:
            logger.error("[%s] ANTHROPIC_API_KEY is not configured", request_id)
            raise LLMServiceError(context={"provider": self.name, "reason": "missing_api_key"})

        payload: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            payload["system"] = system
        if top_p is not None:
            payload["top_p"] = top_p
        if top_k is not None:
            payload["top_k"] = top_k

        start_time = time.time()
        try:
            data = await self._post_with_retry(payload)
        except httpx.HTTPStatusError as e:
            logger.error(
                "[%s] Anthropic API error %d: %s",
                request_id,
                e.response.status_code,
                e.response.text[:500],
            )
            raise LLMServiceError(
                context={"provider": self.name, "request_id": request_id, "status": e.response.status_code},
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error("[%s] Anthropic request failed: %s", request_id, str(e))
            raise LLMServiceError(
                context={"provider": self.name, "request_id": request_id, "error_type": type(e).__name__},
            ) from e

        blocks = data.get("content") if isinstance(data, dict) else None
        if not isinstance(blocks, list):
            raise MalformedResponseError(context={"provider": self.name, "request_id": request_id})
        text = "".join(
            block.get("text", "")
            for block in blocks
            if isinstance(block, dict) and block.get("type") == "text"
        ).strip()

        logger.info(
            "[%s] Anthropic completed in %.0fms, %d chars",
            request_id,
            (time.time() - start_time) * 1000,
            len(text),
        )
        return text

    @retry(
        retry=retry_if_exception_type(httpx.HTTPError),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=1,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _post_with_retry(self, payload: Dict[str, Any]) -> Any:
        async with httpx.AsyncClient(timeout=float(settings.llm_timeout)) as client:
            response = await client.post(
                f"{self.base_url}/v1/messages",
                headers=self._headers(),
                json=payload,
            )
            response.raise_for_status()
            return response.json()

    async def health_check(self) -> bool:
        if not self.api_key:
            return False
        try:
            async with httpx.AsyncClient(timeout=10.0) as client:
                response = await client.get(f"{self.base_url}/v1/models", headers=self._headers())
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.warning("Anthropic health check failed: %s", str(e))
            return False


# ── Singleton Instance ────────────────────────────────────────────────────
anthropic_service = AnthropicService()
