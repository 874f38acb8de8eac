"""Conversational fallback for prompts that are not commands.

The fallback rebuilds the conversation as chat messages and streams the
model's reply back fragment by fragment. Model selection may find nothing
usable; that is reported as a plain notice, never raised to the host.
"""

import json
import logging
from typing import Callable, Iterator, List, Optional, Protocol, Sequence

import requests
from requests.exceptions import RequestException

from src.confluence_client.errors import (
    APIUnreachableError,
    HTTPStatusError,
    KBAgentError,
)
from .config import ChatModelConfig
from .errors import NoChatModelAvailableError
from .models import (
    ChatMessage,
    ChatTurn,
    RequestTurn,
    ResponseStream,
    ResponseTurn,
)

logger = logging.getLogger(__name__)

INSTRUCTIONS = (
    "You are KB Agent, an AI assistant working from a command-line chat.\n"
    "Provide helpful, concise responses, and support special "
    "'@kb_agent /auth', '@kb_agent /page' and '@kb_agent /update' commands "
    "for Confluence integration."
)

NO_MODEL_MESSAGE = 'No chat model available.'


class ChatModel(Protocol):
    """A generic chat model."""

    def send_request(self, messages: Sequence[ChatMessage]) -> Iterator[str]:
        """Send the messages and lazily yield reply text fragments."""
        ...


class OpenAIChatModel:
    """Chat model behind an OpenAI-compatible /chat/completions endpoint.

    Replies are requested with `stream: true` and read as server-sent
    events; each `data:` line carries one delta.
    """

    def __init__(self, config: ChatModelConfig, api_key: str, http: Optional[requests.Session] = None):
        self.config = config
        self._api_key = api_key
        self._http = http if http is not None else requests.Session()

    def send_request(self, messages: Sequence[ChatMessage]) -> Iterator[str]:
        payload = {
            'model': self.config.model,
            'messages': [message.to_dict() for message in messages],
            'stream': True,
        }
        headers = {
            'Content-Type': 'application/json',
            'Authorization': f'Bearer {self._api_key}',
        }
        logger.debug(f"Chat model → {self.config.url} ({len(messages)} messages)")
        try:
            response = self._http.post(
                self.config.url,
                json=payload,
                headers=headers,
                timeout=self.config.timeout,
                stream=True,
            )
        except RequestException as e:
            raise APIUnreachableError(endpoint=self.config.url, reason=type(e).__name__) from e

        if response.status_code >= 400:
            response.close()
            raise HTTPStatusError(response.status_code, response.reason)

        return self._iter_fragments(response)

    @staticmethod
    def _iter_fragments(response) -> Iterator[str]:
        with response:
            for line in response.iter_lines(decode_unicode=True):
                if not line or not line.startswith('data: '):
                    continue
                data = line[len('data: '):]
                if data.strip() == '[DONE]':
                    break
                try:
                    event = json.loads(data)
                except json.JSONDecodeError:
                    continue
                if not isinstance(event, dict):
                    continue
                choices = event.get('choices')
                if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
                    continue
                delta = choices[0].get('delta')
                content = delta.get('content') if isinstance(delta, dict) else None
                if isinstance(content, str) and content:
                    yield content


def select_chat_model(config: ChatModelConfig) -> ChatModel:
    """Pick the configured chat model.

    Raises:
        NoChatModelAvailableError: If no API key is configured
    """
    api_key = config.api_key
    if not api_key:
        raise NoChatModelAvailableError(
            f"Environment variable {config.api_key_env} is not set"
        )
    return OpenAIChatModel(config, api_key)


def build_messages(
    prompt: str,
    history: Sequence[ChatTurn],
    instructions: str = INSTRUCTIONS,
) -> List[ChatMessage]:
    """Rebuild the conversation as chat messages.

    Instructions go first as a user message, then history as alternating
    user/assistant messages, then the current prompt. Assistant turns keep
    only their markdown text and are dropped when that is empty.
    """
    messages = [ChatMessage(role='user', content=instructions)]
    for turn in history:
        if isinstance(turn, RequestTurn):
            messages.append(ChatMessage(role='user', content=turn.prompt))
        elif isinstance(turn, ResponseTurn):
            text = turn.markdown_text()
            if text:
                messages.append(ChatMessage(role='assistant', content=text))
    messages.append(ChatMessage(role='user', content=prompt))
    return messages


class ConversationalFallback:
    """Forwards non-command prompts to a chat model and streams the reply."""

    def __init__(
        self,
        model_selector: Callable[[], ChatModel],
        instructions: str = INSTRUCTIONS,
    ):
        self._select_model = model_selector
        self.instructions = instructions

    def respond(self, prompt: str, history: Sequence[ChatTurn], stream: ResponseStream) -> bool:
        """Stream the model's reply to stream.

        Returns:
            True if a reply was streamed, False if only a notice was written
        """
        try:
            model = self._select_model()
        except NoChatModelAvailableError as e:
            logger.info(f"No chat model: {e}")
            stream.markdown(NO_MODEL_MESSAGE)
            return False

        messages = build_messages(prompt, history, self.instructions)
        try:
            for fragment in model.send_request(messages):
                stream.markdown(fragment)
        except (KBAgentError, RequestException) as e:
            logger.warning(f"Chat model request failed: {e}")
            stream.markdown(f"❌ Chat model request failed: {e}")
            return False
        return True
