"""Request and response shapes for the OpenAI-compatible API and the upstream chat API."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


def _get(data: Any, key: str, kind: type, default: Any) -> Any:
    if not isinstance(data, dict):
        raise ValueError("expected a JSON object")
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, kind):
        raise ValueError(f"field {key!r} has the wrong type")
    return value


@dataclass
class MessagePart:
    """One typed fragment of a message."""

    type: str
    text: str


@dataclass
class Message:
    """A chat message."""

    role: str
    content: str
    parts: list[MessagePart] = field(default_factory=list)

    def to_scira(self) -> Message:
        """Return a copy carrying its content as a single text part."""
        return Message(self.role, self.content, [MessagePart("text", self.content)])

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form; ``parts`` is left out when empty."""
        result = asdict(self)
        if not self.parts:
            del result["parts"]
        return result

    @classmethod
    def _from_dict(cls, data: Any) -> Message:
        parts = [
            MessagePart(_get(p, "type", str, ""), _get(p, "text", str, ""))
            for p in _get(data, "parts", list, [])
        ]
        return cls(_get(data, "role", str, ""), _get(data, "content", str, ""), parts)


@dataclass
class SciraChatRequest:
    """Body of an upstream chat request."""

    id: str
    messages: list[Message]
    selected_model: str
    mcp_servers: list[Any]
    chat_id: str
    user_id: str

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form."""
        return {
            "id": self.id,
            "messages": [m.to_dict() for m in self.messages],
            "selectedModel": self.selected_model,
            "mcpServers": list(self.mcp_servers),
            "chatId": self.chat_id,
            "userId": self.user_id,
        }


@dataclass
class OpenAIChatRequest:
    """An OpenAI-style chat completion request."""

    model: str = ""
    messages: list[Message] = field(default_factory=list)
    stream: bool = False

    @classmethod
    def from_dict(cls, data: Any) -> OpenAIChatRequest:
        """Build a request from decoded JSON, raising ValueError on ill-typed fields."""
        return cls(
            model=_get(data, "model", str, ""),
            messages=[Message._from_dict(m) for m in _get(data, "messages", list, [])],
            stream=_get(data, "stream", bool, False),
        )

    def to_scira(self, model: str, chat_id: str, user_id: str) -> SciraChatRequest:
        """Convert to an upstream request for the given chat and user."""
        return SciraChatRequest(
            id=chat_id,
            messages=[m.to_scira() for m in self.messages],
            selected_model=model,
            mcp_servers=[],
            chat_id=chat_id,
            user_id=user_id,
        )


@dataclass
class Delta:
    """Incremental content of a choice."""

    role: str = ""
    content: str = ""
    reasoning_content: str = ""


@dataclass
class Choice:
    """One completion choice."""

    index: int = 0
    delta: Delta = field(default_factory=Delta)
    finish_reason: str = ""
    natural_finish_reason: str = ""
    logprobs: Any = None


@dataclass
class Usage:
    """Token accounting."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass
class StreamResponse:
    """An OpenAI-style completion chunk or response."""

    id: str
    object: str
    provider: str
    model: str
    created: int
    choices: list[Choice] | None = None
    system_fingerprint: str = ""
    usage: Usage = field(default_factory=Usage)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form; missing choices become ``null``."""
        return asdict(self)


def new_stream_response(
    id: str, created: int, model: str, choices: list[Choice] | None
) -> StreamResponse:
    """Create a completion chunk from the upstream provider."""
    return StreamResponse(id, "chat.completion.chunk", "scira", model, created, choices)


def new_choice(content: str, reasoning_content: str, finish_reason: str) -> list[Choice]:
    """Create a single assistant choice."""
    return [Choice(0, Delta("assistant", content, reasoning_content), finish_reason)]