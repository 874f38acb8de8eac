"""Command dispatcher for chat prompts.

Routes each prompt to exactly one outcome:

    raw prompt ──normalize──▶ starts with prefix? ──no──▶ chat model fallback
                                    │ yes
                                    ▼
                     tokenize "/name args" ──unknown──▶ usage-help message
                                    │
                     requires auth and none stored ──▶ auth-required message
                                    │
                     arity check ──fail──▶ usage message
                                    │
                     handler ──▶ success message | failure message

A command turn always writes exactly one payload to the response stream.
No remote failure is retried and none escapes dispatch().
"""

import logging
from typing import Dict, Optional, Sequence

from src.confluence_client.api_wrapper import ConfluenceClient
from src.confluence_client.errors import KBAgentError
from .commands import (
    AUTH_REQUIRED_MESSAGE,
    UNKNOWN_COMMAND_MESSAGE,
    CommandContext,
    CommandSpec,
    build_command_table,
    tokenize,
)
from .errors import AuthenticationRequiredError, AuthPayloadError, UsageError
from .fallback import ConversationalFallback
from .models import ChatTurn, CommandResult, ResponseStream
from .normalizer import normalize_prompt
from .session import Session

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = '@kb_agent '


class CommandDispatcher:
    """Routes prompts to command handlers or the conversational fallback.

    Example:
        >>> dispatcher = CommandDispatcher(session, client, fallback)
        >>> result = dispatcher.dispatch('@kb_agent /page 123', [], stream)
        >>> result.success
        True
    """

    def __init__(
        self,
        session: Session,
        client: ConfluenceClient,
        fallback: ConversationalFallback,
        prefix: str = DEFAULT_PREFIX,
        commands: Optional[Dict[str, CommandSpec]] = None,
    ):
        self.session = session
        self.client = client
        self.fallback = fallback
        self.prefix = prefix
        self.commands = commands if commands is not None else build_command_table()

    def dispatch(
        self,
        prompt: Optional[str],
        history: Sequence[ChatTurn],
        stream: ResponseStream,
    ) -> CommandResult:
        """Handle one chat turn.

        Args:
            prompt: Raw prompt as typed by the user
            history: Earlier turns of this conversation
            stream: Where the response is written

        Returns:
            CommandResult describing the outcome (command=None when the
            prompt went to the chat model)
        """
        original = prompt or ''
        normalized = normalize_prompt(original)

        if not normalized.startswith(self.prefix):
            logger.debug("Prompt is not a command, delegating to chat model")
            replied = self.fallback.respond(original, history, stream)
            return CommandResult(command=None, success=replied)

        result = self._run_command(normalized[len(self.prefix):])
        stream.markdown(result.message)
        return result

    def _run_command(self, text: str) -> CommandResult:
        invocation = tokenize(text)
        spec = self.commands.get(invocation.name) if invocation else None
        if spec is None:
            logger.info(f"Unknown command: {text.strip()[:50]!r}")
            return CommandResult(
                command=invocation.name if invocation else '',
                success=False,
                message=UNKNOWN_COMMAND_MESSAGE,
            )

        try:
            # Snapshot: a later re-authentication does not affect this turn
            credentials = self.session.credentials
            if spec.requires_auth and credentials is None:
                raise AuthenticationRequiredError(spec.name)
            spec.check_arity(invocation)

            logger.info(f"Running /{spec.name}")
            context = CommandContext(
                session=self.session,
                client=self.client,
                credentials=credentials,
            )
            return spec.handler(context, invocation)

        except AuthenticationRequiredError:
            logger.info(f"/{spec.name} rejected: not authenticated")
            return CommandResult(command=spec.name, success=False, message=AUTH_REQUIRED_MESSAGE)

        except (UsageError, AuthPayloadError) as e:
            return CommandResult(command=spec.name, success=False, message=str(e))

        except (KBAgentError, ValueError) as e:
            logger.warning(f"/{spec.name} failed: {e}")
            return CommandResult(
                command=spec.name,
                success=False,
                message=f"❌ {spec.failure}: {e}",
            )
