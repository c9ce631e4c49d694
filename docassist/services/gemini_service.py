"""
Document AI Assistant — Google Gemini Provider
===============================================

What:  LLMService implementation over the google-generativeai SDK, plus
       audio transcription through the Gemini file API.
Who:   Serves the tasks configured with provider "gemini" (by default todo
       detection and meeting summaries) and every transcription.

Resilience:
    Tenacity wraps the raw SDK call. The attempt count comes from
    RETRY_MAX_ATTEMPTS and defaults to 1, so failures surface to the caller
    immediately unless RETRY_MAX_ATTEMPTS is raised.
"""

import asyncio
import logging
import time
import uuid
from pathlib import Path
from typing import Any, Optional

import google.generativeai as genai
from tenacity import (
    before_sleep_log,
    retry,
    stop_after_attempt,
    wait_exponential_jitter,
)

from docassist.config import settings
from docassist.exceptions import AssistantError, LLMServiceError
from docassist.services.llm_base import LLMService

logger = logging.getLogger(__name__)


class GeminiService(LLMService):
    name = "gemini"

    TRANSCRIBE_PROMPT = """Transcribe this meeting recording accurately.

Instructions:
1. Write out everything that is said, in the order it is said
2. When speakers can be told apart, prefix their turns with "Speaker 1:", "Speaker 2:", ...
3. Keep natural paragraph breaks between topics
4. Mark inaudible passages as [inaudible]
5. Return ONLY the transcript, with no commentary"""

    def __init__(self, model_name: Optional[str] = None):
        if settings.gemini_api_key:
            genai.configure(api_key=settings.gemini_api_key)
        self.model_name = model_name or settings.gemini_model
        logger.info("GeminiService initialized with model=%s", self.model_name)

    def _model(self, system: Optional[str] = None) -> "genai.GenerativeModel":
        if system:
            return genai.GenerativeModel(self.model_name, system_instruction=system)
        return genai.GenerativeModel(self.model_name)

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
        request_id = uuid.uuid4().hex[:8]
        config: dict = {"max_output_tokens": max_tokens, "temperature": temperature}
        if top_p is not None:
            config["top_p"] = top_p
        if top_k is not None:
            config["top_k"] = top_k
        if json_output:
            config["response_mime_type"] = "application/json"

        logger.info("[%s] Gemini generate (%d prompt chars)", request_id, len(prompt))
        try:
            return await self._generate_with_retry(
                self._model(system), prompt, genai.GenerationConfig(**config), request_id
            )
        except AssistantError:
            raise
        except Exception as e:
            logger.error("[%s] Gemini generation failed: %s", request_id, str(e), exc_info=True)
            raise LLMServiceError(
                context={"provider": self.name, "request_id": request_id, "error_type": type(e).__name__},
            ) from e

    @retry(
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=1,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _generate_with_retry(
        self,
        model: Any,
        contents: Any,
        generation_config: Any,
        request_id: str,
    ) -> str:
        start_time = time.time()
        response = await model.generate_content_async(
            contents,
            generation_config=generation_config,
            request_options={"timeout": settings.llm_timeout},
        )
        # .text raises ValueError when the candidate was blocked
        text = (response.text or "").strip()
        logger.info(
            "[%s] Gemini completed in %.0fms, %d chars",
            request_id,
            (time.time() - start_time) * 1000,
            len(text),
        )
        return text

    async def transcribe_audio(self, audio_path: str, mime_type: Optional[str] = None) -> str:
        """
        Uploads a stored recording to the Gemini file API and returns its transcript.

        Raises:
            LLMServiceError: upload or generation failed
        """
        request_id = uuid.uuid4().hex[:8]
        logger.info("[%s] Starting Gemini transcription for %s", request_id, Path(audio_path).name)
        try:
            audio_file = await asyncio.to_thread(
                genai.upload_file, path=audio_path, mime_type=mime_type
            )
            return await self._generate_with_retry(
                self._model(),
                [self.TRANSCRIBE_PROMPT, audio_file],
                genai.GenerationConfig(temperature=0.1),
                request_id,
            )
        except AssistantError:
            raise
        except Exception as e:
            logger.error("[%s] Gemini transcription failed: %s", request_id, str(e), exc_info=True)
            raise LLMServiceError(
                message="Audio transcription failed. Please try again.",
                context={"provider": self.name, "request_id": request_id, "error_type": type(e).__name__},
            ) from e

    async def health_check(self) -> bool:
        if not settings.gemini_api_key:
            return False
        try:
            models = await asyncio.to_thread(lambda: list(genai.list_models()))
            target = f"models/{self.model_name}"
            if target not in {m.name for m in models}:
                logger.warning("Configured model %s not found in available models", target)
            return True
        except Exception as e:
            logger.warning("Gemini health check failed: %s", str(e))
            return False


# ── Singleton Instance ────────────────────────────────────────────────────
gemini_service = GeminiService()
