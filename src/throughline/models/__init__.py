"""Pydantic models for relay requests, buffered responses and stream events."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Message(BaseModel):
    """Chat message model."""

    model_config = ConfigDict(extra="allow")

    role: str
    content: Any = None


class ChatRequest(BaseModel):
    """Chat request as received by the relay.

    Field values are only loosely typed; upstream judges their validity.
    """

    model_config = ConfigDict(extra="ignore")

    model: Any = None
    max_tokens: Any = None
    messages: list[Message]
    system: Any = None
    tools: Any = None
    stream: Any = None

    @property
    def streaming(self) -> bool:
        """Only a literal JSON true selects streaming."""
        return self.stream is True

    def to_upstream_payload(self, default_model: str, default_max_tokens: int) -> dict[str, Any]:
        """Build the normalized upstream payload.

        ``system``, ``tools`` and ``stream`` are only included when set, since
        upstream treats their presence as significant.

        Args:
            default_model: Model used when the request has none
            default_max_tokens: Token limit used when the request has none

        Returns:
            Upstream API payload dict
        """
        payload: dict[str, Any] = {
            "model": self.model or default_model,
            "max_tokens": self.max_tokens or default_max_tokens,
            "messages": [m.model_dump(exclude_unset=True) for m in self.messages],
        }
        if self.system:
            payload["system"] = self.system
        if self.tools:
            payload["tools"] = self.tools
        if self.streaming:
            payload["stream"] = True
        return payload


class ContentBlock(BaseModel):
    """One block of a buffered response."""

    model_config = ConfigDict(extra="allow")

    type: str | None = None
    text: str | None = None


class ChatResponse(BaseModel):
    """Buffered chat response."""

    model_config = ConfigDict(extra="allow")

    content: list[ContentBlock] = Field(default_factory=list)
    error: dict[str, Any] | str | None = None

    def text_blocks(self) -> list[str]:
        """Texts of the blocks that carry one, in order."""
        return [block.text for block in self.content if block.text]

    def joined_text(self, separator: str = "") -> str:
        """Concatenate all text blocks."""
        return separator.join(self.text_blocks())


class Delta(BaseModel):
    """Payload of a content_block_delta event."""

    model_config = ConfigDict(extra="allow")

    type: str | None = None
    text: str | None = None


class StreamEvent(BaseModel):
    """One decoded ``data:`` event from the upstream stream."""

    model_config = ConfigDict(extra="allow")

    type: str
    delta: Delta | None = None

    @property
    def text_delta(self) -> str | None:
        """Text carried by the event, if it is a text delta."""
        if (
            self.type == "content_block_delta"
            and self.delta is not None
            and self.delta.type == "text_delta"
        ):
            return self.delta.text
        return None
