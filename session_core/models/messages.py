"""
Client message value objects - WBS 2.1.2

A ClientMessage is what a client submits to open a new request: the prompt,
an optional hint about which provider should serve it, and an optional token
budget. The core only records it; routing on the hint happens elsewhere.

Pattern: Value object (frozen pydantic model)
Pattern: "with_*" methods return a new validated value instead of mutating
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# WBS 2.1.2.1: LLMProviderHint
# =============================================================================


class LLMProviderHint(str, Enum):
    """
    Provider a client would like its request routed to.

    Lookup is case-insensitive and ignores surrounding whitespace, so
    ``LLMProviderHint(" Claude ")`` is ``LLMProviderHint.CLAUDE``.
    """

    CLAUDE = "claude"
    OPENAI = "openai"
    GEMINI = "gemini"

    @classmethod
    def _missing_(cls, value: object) -> Optional["LLMProviderHint"]:
        if isinstance(value, str):
            normalized = value.strip().lower()
            for member in cls:
                if member.value == normalized:
                    return member
        return None

    @property
    def display_name(self) -> str:
        """Human-facing provider name (Claude, OpenAI, Gemini)."""
        return _DISPLAY_NAMES[self]

    def __str__(self) -> str:
        return self.display_name


_DISPLAY_NAMES = {
    LLMProviderHint.CLAUDE: "Claude",
    LLMProviderHint.OPENAI: "OpenAI",
    LLMProviderHint.GEMINI: "Gemini",
}


# =============================================================================
# WBS 2.1.2.2: ClientMessage
# =============================================================================


class ClientMessage(BaseModel):
    """
    A prompt submitted by a client.

    Attributes:
        prompt: Non-empty prompt text, trimmed.
        provider_hint: Optional preferred provider.
        max_tokens: Optional positive token budget.

    Example:
        >>> msg = ClientMessage(prompt="  Hello ", provider_hint="claude")
        >>> msg.prompt
        'Hello'
        >>> msg.with_max_tokens(256).max_tokens
        256
    """

    model_config = ConfigDict(frozen=True)

    prompt: str = Field(..., description="Prompt text (trimmed, non-empty)")
    provider_hint: Optional[LLMProviderHint] = Field(
        default=None, description="Preferred LLM provider"
    )
    max_tokens: Optional[int] = Field(
        default=None, gt=0, strict=True, description="Token budget for the response"
    )

    @field_validator("prompt")
    @classmethod
    def validate_prompt(cls, v: str) -> str:
        prompt = v.strip()
        if not prompt:
            raise ValueError("prompt cannot be empty")
        return prompt

    @field_validator("provider_hint", mode="before")
    @classmethod
    def parse_provider_hint(cls, v: Any) -> Any:
        if isinstance(v, str):
            return LLMProviderHint(v)
        return v

    def with_provider_hint(self, provider_hint: LLMProviderHint | str) -> "ClientMessage":
        """Return a copy with a different provider hint."""
        return self._replace(provider_hint=provider_hint)

    def with_max_tokens(self, max_tokens: int) -> "ClientMessage":
        """
        Return a copy with a different token budget.

        Raises:
            pydantic.ValidationError: If max_tokens is not a positive integer.
        """
        return self._replace(max_tokens=max_tokens)

    def _replace(self, **changes: Any) -> "ClientMessage":
        # model_copy skips validation; rebuild so new values are checked
        return type(self).model_validate({**self.model_dump(), **changes})

    def __str__(self) -> str:
        parts = [f'prompt: "{self.prompt}"']
        if self.provider_hint is not None:
            parts.append(f"provider: {self.provider_hint}")
        if self.max_tokens is not None:
            parts.append(f"maxTokens: {self.max_tokens}")
        return f"ClientMessage({', '.join(parts)})"
