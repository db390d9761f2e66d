"""
Identifier value objects - WBS 2.1.1

SessionId and RequestId are distinct wrapper types over a trimmed, non-empty
string. Two identifiers of different kinds never compare equal, even when
they wrap the same text, so a RequestId cannot stand in for a SessionId.

Pattern: Value object (identified by data, not identity)
Pattern: pydantic RootModel so identifiers serialize as plain JSON strings
"""

from typing import ClassVar
from uuid import uuid4

from pydantic import ConfigDict, RootModel, field_validator


class _Identifier(RootModel[str]):
    """Shared validation and helpers for identifier value objects."""

    model_config = ConfigDict(frozen=True)

    id_prefix: ClassVar[str] = ""

    @field_validator("root")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Trim surrounding whitespace and reject empty identifiers."""
        value = v.strip()
        if not value:
            raise ValueError(f"{cls.__name__} cannot be empty")
        return value

    @classmethod
    def generate(cls):
        """Create a fresh random identifier (``<prefix>-<uuid4>``)."""
        return cls(f"{cls.id_prefix}-{uuid4()}")

    @property
    def value(self) -> str:
        """The raw identifier text."""
        return self.root

    def __str__(self) -> str:
        return self.root

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.root})"


class SessionId(_Identifier):
    """
    Identifier of a client session.

    Example:
        >>> SessionId("  session-abc ").value
        'session-abc'
    """

    id_prefix: ClassVar[str] = "session"


class RequestId(_Identifier):
    """
    Identifier of a single streamed request within a session.

    Example:
        >>> RequestId.generate().value.startswith("request-")
        True
    """

    id_prefix: ClassVar[str] = "request"
