"""Data models for the agent.

All models use dataclasses, following the patterns of src/models. None of
them are persisted; they live for one chat turn or one conversation.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Union


@dataclass
class CommandInvocation:
    """A command parsed from a prompt.

    Attributes:
        name: Command name without the leading slash (e.g., "page")
        args: Raw argument text after the name, stripped

    Example:
        >>> CommandInvocation(name="update", args="123 hello world").positional()
        ['123', 'hello', 'world']
    """
    name: str
    args: str = ''

    def positional(self) -> List[str]:
        return self.args.split()


@dataclass
class CommandResult:
    """Outcome of one chat turn.

    Attributes:
        command: Command name, or None when the turn went to the chat model
        success: Whether the command did what was asked
        message: The single response payload written for a command
    """
    command: Optional[str]
    success: bool
    message: str = ''

    @property
    def delegated(self) -> bool:
        return self.command is None


@dataclass
class ResponsePart:
    """One part of a rendered response; only markdown parts carry text."""
    kind: str
    value: str = ''


@dataclass
class RequestTurn:
    """A user prompt from earlier in the conversation."""
    prompt: str


@dataclass
class ResponseTurn:
    """An assistant response from earlier in the conversation."""
    parts: List[ResponsePart] = field(default_factory=list)

    def markdown_text(self) -> str:
        return '\n'.join(part.value for part in self.parts if part.kind == 'markdown')


ChatTurn = Union[RequestTurn, ResponseTurn]


@dataclass
class ChatMessage:
    """A message sent to a chat model."""
    role: str  # "user" or "assistant"
    content: str

    def to_dict(self) -> dict:
        return {'role': self.role, 'content': self.content}


class ResponseStream(Protocol):
    """Where a turn writes its output (the host's chat response)."""

    def markdown(self, text: str) -> None:
        ...


class RecordingStream:
    """ResponseStream that keeps every part, optionally forwarding it.

    Used to build the ResponseTurn that goes into the conversation history.
    """

    def __init__(self, forward: Optional[ResponseStream] = None):
        self.parts: List[ResponsePart] = []
        self._forward = forward

    def markdown(self, text: str) -> None:
        self.parts.append(ResponsePart(kind='markdown', value=text))
        if self._forward is not None:
            self._forward.markdown(text)

    @property
    def text(self) -> str:
        return ''.join(part.value for part in self.parts)

    def to_turn(self) -> ResponseTurn:
        """Build the history turn; consecutive markdown fragments form one part."""
        parts: List[ResponsePart] = []
        for part in self.parts:
            if parts and part.kind == 'markdown' and parts[-1].kind == 'markdown':
                parts[-1] = ResponsePart(kind='markdown', value=parts[-1].value + part.value)
            else:
                parts.append(part)
        return ResponseTurn(parts=parts)
