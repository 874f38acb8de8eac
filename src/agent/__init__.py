"""Chat agent for reading and updating Confluence pages.

This package turns free-text chat prompts into Confluence operations:
prompt normalization, the command table, the dispatcher, the credential
session and the conversational fallback for everything that is not a
command.
"""

from .dispatcher import CommandDispatcher
from .fallback import ConversationalFallback
from .models import CommandResult, RequestTurn, ResponseTurn, ResponsePart
from .normalizer import normalize_prompt
from .session import Session
from .errors import (
    AgentError,
    UsageError,
    AuthPayloadError,
    AuthenticationRequiredError,
    NoChatModelAvailableError,
    ConfigError,
    CredentialStoreError,
)

__all__ = [
    'CommandDispatcher',
    'ConversationalFallback',
    'CommandResult',
    'RequestTurn',
    'ResponseTurn',
    'ResponsePart',
    'normalize_prompt',
    'Session',
    'AgentError',
    'UsageError',
    'AuthPayloadError',
    'AuthenticationRequiredError',
    'NoChatModelAvailableError',
    'ConfigError',
    'CredentialStoreError',
]
