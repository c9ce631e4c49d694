"""
Document AI Assistant — Text Generation Contract
=================================================

What:  Abstract provider interface plus the shared JSON-output parser.
Why:   Todo detection, classification, summaries and chat all need
       "prompt in, text out". They differ only in which provider serves them
       (configured per task in settings), so callers depend on LLMService,
       never on a concrete SDK.

Implementations:
    - GeminiService    (google-generativeai SDK; also transcribes audio)
    - AnthropicService (Messages API over httpx)

Error contract:
    Provider, network, quota and auth failures → LLMServiceError
    Output that is not the JSON the caller asked for → MalformedResponseError
"""

import json
import re
from abc import ABC, abstractmethod
from typing import Any, Optional

from docassist.exceptions import MalformedResponseError

_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


class LLMService(ABC):
    """Provider-neutral text generation."""

    name: str = "llm"

    @abstractmethod
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
        """
        Single-turn completion.

        Args:
            prompt:      User content.
            system:      Optional system instruction.
            json_output: Ask the provider for a JSON-only answer where it
                         supports that natively. Callers still validate.

        Returns:
            Generated text, stripped. Never None.

        Raises:
            LLMServiceError: the provider could not produce an answer.
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Lightweight reachability check that consumes no generation quota."""
        ...


def parse_json_response(text: str, provider: str = "llm") -> Any:
    """
    Decodes a model answer that should be a single JSON value.

    Markdown code fences around the JSON are tolerated; anything else that
    fails to decode raises MalformedResponseError.
    """
    candidate = (text or "").strip()
    fenced = _FENCE.match(candidate)
    if fenced:
        candidate = fenced.group(1)

    try:
        return json.loads(candidate)
    except (TypeError, ValueError) as exc:
        raise MalformedResponseError(
            context={"provider": provider, "preview": candidate[:200]},
        ) from exc
