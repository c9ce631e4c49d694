"""
Provider registry: maps the names used in settings (and the chat request's
optional "provider" field) to the LLMService singletons.
"""

from typing import Dict, Optional

from docassist.config import settings
from docassist.exceptions import ValidationError
from docassist.services.anthropic_service import anthropic_service
from docassist.services.gemini_service import gemini_service
from docassist.services.llm_base import LLMService

PROVIDERS: Dict[str, LLMService] = {
    "gemini": gemini_service,
    "anthropic": anthropic_service,
}


def get_llm_service(name: Optional[str]) -> LLMService:
    key = (name or "").strip().lower()
    service = PROVIDERS.get(key)
    if service is None:
        raise ValidationError(
            message=f"Unknown AI provider '{name}'. Must be one of: {', '.join(sorted(PROVIDERS))}",
            field="provider",
        )
    return service


def provider_for(task: str) -> LLMService:
    """task is one of: chat, classification, detection, summary."""
    return get_llm_service(getattr(settings, f"{task}_provider"))
