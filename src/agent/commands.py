"""Command table and handlers.

Each command is declared once in a CommandSpec: its name, arity, usage
text, whether it needs a stored credential, and the handler. The
dispatcher owns routing, authentication and arity checks; handlers only
parse their own arguments and talk to Confluence.

Handlers return a CommandResult and raise:
- UsageError / AuthPayloadError for bad arguments (no remote call made)
- RemoteCallError (and ValueError for a bad page id) for failed calls
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from src.confluence_client.api_wrapper import ConfluenceClient
from src.confluence_client.auth import Credentials
from .errors import AuthPayloadError, UsageError
from .models import CommandInvocation, CommandResult
from .session import Session

logger = logging.getLogger(__name__)

AUTH_FIELDS = ('token', 'url', 'email')
AUTH_PROBE_LIMIT = 1

UNKNOWN_COMMAND_MESSAGE = (
    '❌ Unknown command. Use `/auth`, `/pages`, `/page <id>`, '
    '`/update <id> <text>`, or `/create`.'
)
AUTH_REQUIRED_MESSAGE = '❌ Not authenticated. Run `/auth` first.'
INVALID_AUTH_JSON_MESSAGE = '❌ Invalid JSON for authentication.'
MISSING_AUTH_FIELDS_MESSAGE = '❌ Missing fields: token, url, email.'
MISSING_APPEND_TEXT_MESSAGE = '❌ Missing message to append.'
INVALID_CREATE_JSON_MESSAGE = '❌ Invalid JSON format for page data.'
MISSING_CREATE_FIELDS_MESSAGE = '❌ Missing: spaceKey, title, content.'

_COMMAND_RE = re.compile(r'^/([A-Za-z][\w-]*)(.*)$', re.DOTALL)


@dataclass
class CommandContext:
    """What a handler may use during one invocation.

    Attributes:
        session: Session holding the active credential
        client: Confluence client
        credentials: Credential snapshot taken when the turn started
                     (None only for commands that do not require auth)
    """
    session: Session
    client: ConfluenceClient
    credentials: Optional[Credentials]


Handler = Callable[[CommandContext, CommandInvocation], CommandResult]


@dataclass
class CommandSpec:
    """Declarative description of one command.

    Attributes:
        name: Command name without the slash
        handler: Function running the command
        usage: Usage message returned on an arity error
        failure: Prefix for the message when the handler's remote work fails
        min_args: Minimum number of whitespace-separated arguments
        max_args: Maximum number of arguments (None = unbounded)
        requires_auth: Whether a stored credential is required
        raw_args: Arguments are one free-form blob (JSON); no arity check
    """
    name: str
    handler: Handler
    usage: str
    failure: str
    min_args: int = 0
    max_args: Optional[int] = None
    requires_auth: bool = True
    raw_args: bool = False

    def check_arity(self, invocation: CommandInvocation) -> None:
        """Raise UsageError if the positional argument count is out of range."""
        if self.raw_args:
            return
        count = len(invocation.positional())
        if count < self.min_args or (self.max_args is not None and count > self.max_args):
            raise UsageError(self.usage, command=self.name)


def tokenize(text: str) -> Optional[CommandInvocation]:
    """Split command text into a name and its raw argument string.

    Example:
        >>> tokenize('/update 123 hello world')
        CommandInvocation(name='update', args='123 hello world')
        >>> tokenize('hello') is None
        True
    """
    match = _COMMAND_RE.match(text.strip())
    if not match:
        return None
    return CommandInvocation(name=match.group(1), args=match.group(2).strip())


def _parse_json_object(text: str, error_message: str) -> dict:
    try:
        data = json.loads(text)
    except ValueError:
        raise AuthPayloadError(error_message)
    if not isinstance(data, dict):
        raise AuthPayloadError(error_message)
    return data


def handle_auth(ctx: CommandContext, invocation: CommandInvocation) -> CommandResult:
    """Verify a candidate credential against Confluence, then store it.

    The candidate is used for one cheap probe (`GET /space?limit=1`). Only a
    successful probe replaces the stored credential.
    """
    data = _parse_json_object(invocation.args, INVALID_AUTH_JSON_MESSAGE)

    missing = [key for key in AUTH_FIELDS if not data.get(key)]
    if missing:
        raise AuthPayloadError(MISSING_AUTH_FIELDS_MESSAGE, missing_fields=missing)

    try:
        candidate = Credentials.build(
            url=data['url'],
            email=data['email'],
            token=data['token'],
        )
    except ValueError:
        raise AuthPayloadError(MISSING_AUTH_FIELDS_MESSAGE, missing_fields=['url'])

    logger.info(f"Probing credentials for {candidate.url}")
    ctx.client.list_spaces(limit=AUTH_PROBE_LIMIT, credentials=candidate)
    ctx.session.set_credentials(candidate)

    return CommandResult(
        command=invocation.name,
        success=True,
        message='✅ **Authenticated!** You can now use `/page` and `/update`.',
    )


def handle_page(ctx: CommandContext, invocation: CommandInvocation) -> CommandResult:
    """Fetch one page and render a summary with its storage body."""
    page_id = invocation.positional()[0]
    page = ctx.client.get_page(page_id, credentials=ctx.credentials)
    url = ctx.client.page_url(page.webui, credentials=ctx.credentials)

    output = f"### 📄 Page: {page.title}\n"
    output += f"- ID: {page.page_id}\n"
    output += f"- Space: {page.space_key}\n"
    output += f"- Version: {page.version}\n"
    output += f"- URL: {url}\n\n"
    output += f"**Content:**\n\n{page.content_storage}"

    return CommandResult(command=invocation.name, success=True, message=output)


def handle_update(ctx: CommandContext, invocation: CommandInvocation) -> CommandResult:
    """Append a paragraph to a page.

    Reads the page, then writes the extended body with version + 1. The two
    requests are not atomic: if someone else edits the page in between,
    Confluence rejects the write and the rejection is reported as a failure.
    """
    parts = invocation.args.split(None, 1)
    if len(parts) < 2 or not parts[1].strip():
        raise UsageError(MISSING_APPEND_TEXT_MESSAGE, command=invocation.name)
    page_id, text = parts[0], parts[1].strip()

    page = ctx.client.get_page(page_id, credentials=ctx.credentials)
    new_body = page.content_storage + f"<p>{text}</p>"
    ctx.client.update_page(page, new_body, credentials=ctx.credentials)
    logger.info(f"Updated page {page.page_id} to version {page.version + 1}")

    url = ctx.client.page_url(page.webui, credentials=ctx.credentials)
    return CommandResult(
        command=invocation.name,
        success=True,
        message=f"✅ Appended content to [{page.title}]({url}) (version {page.version + 1})",
    )


def handle_pages(ctx: CommandContext, invocation: CommandInvocation) -> CommandResult:
    """List page titles from every accessible space."""
    spaces = ctx.client.list_spaces(limit=50, credentials=ctx.credentials)

    output = '📚 **Page Titles from all accessible spaces:**\n\n'
    total_pages = 0
    for space in spaces:
        pages = ctx.client.list_space_pages(space.key, limit=100, credentials=ctx.credentials)
        if not pages:
            continue
        output += f"**Space: {space.name} ({space.key})**\n"
        for page in pages:
            url = ctx.client.page_url(page.webui, credentials=ctx.credentials)
            output += f"- [{page.title}]({url}) (ID: {page.page_id})\n"
            total_pages += 1
        output += '\n'

    if total_pages == 0:
        return CommandResult(command=invocation.name, success=True, message='📄 No pages found.')

    output += f"---\n**Total: {total_pages} pages found**"
    return CommandResult(command=invocation.name, success=True, message=output)


def handle_create(ctx: CommandContext, invocation: CommandInvocation) -> CommandResult:
    """Create a page from `{"spaceKey", "title", "content", "parentId"?}`."""
    try:
        data = _parse_json_object(invocation.args, INVALID_CREATE_JSON_MESSAGE)
    except AuthPayloadError as e:
        raise UsageError(str(e), command=invocation.name)

    if not data.get('spaceKey') or not data.get('title') or not data.get('content'):
        raise UsageError(MISSING_CREATE_FIELDS_MESSAGE, command=invocation.name)

    parent_id = data.get('parentId')
    created = ctx.client.create_page(
        space_key=str(data['spaceKey']),
        title=str(data['title']),
        content=str(data['content']),
        parent_id=str(parent_id) if parent_id else None,
        credentials=ctx.credentials,
    )
    url = ctx.client.page_url(created.webui, credentials=ctx.credentials)
    return CommandResult(
        command=invocation.name,
        success=True,
        message=f"✅ Page created: [{created.title}]({url})",
    )


DEFAULT_COMMANDS: List[CommandSpec] = [
    CommandSpec(
        name='auth',
        handler=handle_auth,
        usage='❌ Usage: `/auth {"token":"...","url":"...","email":"..."}`',
        failure='Auth failed',
        requires_auth=False,
        raw_args=True,
    ),
    CommandSpec(
        name='page',
        handler=handle_page,
        usage='❌ Usage: `/page <pageId>`',
        failure='Failed to fetch page',
        min_args=1,
        max_args=1,
    ),
    CommandSpec(
        name='update',
        handler=handle_update,
        usage='❌ Usage: `/update <pageId> <message to append>`',
        failure='Failed to update page',
        min_args=1,
    ),
]

EXPERIMENTAL_COMMANDS: List[CommandSpec] = [
    CommandSpec(
        name='pages',
        handler=handle_pages,
        usage='❌ Usage: `/pages`',
        failure='Failed to read pages',
        max_args=0,
    ),
    CommandSpec(
        name='create',
        handler=handle_create,
        usage='❌ Usage: `/create {"spaceKey":"...","title":"...","content":"..."}`',
        failure='Create failed',
        raw_args=True,
    ),
]


def build_command_table(experimental: bool = False) -> Dict[str, CommandSpec]:
    """Return the name → spec table, optionally with /pages and /create."""
    specs = DEFAULT_COMMANDS + (EXPERIMENTAL_COMMANDS if experimental else [])
    return {spec.name: spec for spec in specs}
