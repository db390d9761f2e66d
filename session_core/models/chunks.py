"""
Stream chunk value objects - WBS 2.1.3

A StreamChunk is one fragment of a streamed provider response. It is a closed
tagged union of three variants, discriminated by the ``type`` field:

- DeltaChunk: an incremental piece of response text
- CompleteChunk: end-of-stream marker, optionally with the total token count
- ErrorChunk: a provider-reported error

Unknown tags are rejected when a chunk is parsed (parse_stream_chunk) or when
a chunk list is validated as part of a Request, never later at use time.

Pattern: Discriminated union (pydantic ``Field(discriminator=...)``)
Pattern: Exhaustive match helper instead of isinstance chains at call sites
"""

from typing import Annotated, Any, Callable, Literal, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

R = TypeVar("R")


class _ChunkBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    @property
    def is_delta(self) -> bool:
        return False

    @property
    def is_complete(self) -> bool:
        return False

    @property
    def is_error(self) -> bool:
        return False


class DeltaChunk(_ChunkBase):
    """Incremental response text. Content is kept verbatim (no trimming)."""

    type: Literal["delta"] = "delta"
    content: str = Field(..., min_length=1, description="Text fragment")

    @property
    def is_delta(self) -> bool:
        return True

    def __str__(self) -> str:
        return f'StreamChunk.Delta(content: "{self.content}")'


class CompleteChunk(_ChunkBase):
    """End-of-stream marker reported by the provider."""

    type: Literal["complete"] = "complete"
    total_tokens: Optional[int] = Field(
        default=None, gt=0, strict=True, description="Total tokens used"
    )

    @property
    def is_complete(self) -> bool:
        return True

    def __str__(self) -> str:
        if self.total_tokens is None:
            return "StreamChunk.Complete()"
        return f"StreamChunk.Complete(totalTokens: {self.total_tokens})"


class ErrorChunk(_ChunkBase):
    """Provider-side error reported mid-stream."""

    type: Literal["error"] = "error"
    error: str = Field(..., description="Error message (trimmed, non-empty)")

    @field_validator("error")
    @classmethod
    def validate_error(cls, v: str) -> str:
        message = v.strip()
        if not message:
            raise ValueError("error message cannot be empty")
        return message

    @property
    def is_error(self) -> bool:
        return True

    def __str__(self) -> str:
        return f'StreamChunk.Error(error: "{self.error}")'


StreamChunk = Annotated[
    Union[DeltaChunk, CompleteChunk, ErrorChunk],
    Field(discriminator="type"),
]

_stream_chunk_adapter: TypeAdapter[StreamChunk] = TypeAdapter(StreamChunk)


def parse_stream_chunk(data: Any) -> Union[DeltaChunk, CompleteChunk, ErrorChunk]:
    """
    Build a chunk from its wire form.

    Args:
        data: Mapping such as ``{"type": "delta", "content": "Hi"}``.

    Returns:
        The matching chunk variant.

    Raises:
        pydantic.ValidationError: For unknown tags or invalid payloads.
    """
    return _stream_chunk_adapter.validate_python(data)


def match_chunk(
    chunk: Union[DeltaChunk, CompleteChunk, ErrorChunk],
    *,
    on_delta: Callable[[str], R],
    on_complete: Callable[[Optional[int]], R],
    on_error: Callable[[str], R],
) -> R:
    """
    Dispatch on the chunk variant. Every variant must be handled.

    Example:
        >>> match_chunk(
        ...     DeltaChunk(content="Hi"),
        ...     on_delta=lambda text: text,
        ...     on_complete=lambda tokens: "",
        ...     on_error=lambda message: "",
        ... )
        'Hi'
    """
    if isinstance(chunk, DeltaChunk):
        return on_delta(chunk.content)
    if isinstance(chunk, CompleteChunk):
        return on_complete(chunk.total_tokens)
    if isinstance(chunk, ErrorChunk):
        return on_error(chunk.error)
    raise TypeError(f"Unknown stream chunk type: {type(chunk).__name__}")
