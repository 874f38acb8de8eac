"""Main CLI entry point for the kb-agent command.

This module provides the Typer application that hosts the agent in a
terminal: an interactive chat, a one-shot prompt, and login/logout helpers
for the stored Confluence credential.
"""

import json
import logging
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import typer

from src.agent.commands import build_command_table
from src.agent.config import AgentConfig, ConfigLoader
from src.agent.credential_store import FileCredentialStore
from src.agent.dispatcher import CommandDispatcher
from src.agent.errors import ConfigError, CredentialStoreError
from src.agent.fallback import ConversationalFallback, select_chat_model
from src.agent.models import ChatTurn, RecordingStream, RequestTurn
from src.agent.session import Session
from src.cli.models import ExitCode
from src.cli.output import OutputHandler
from src.confluence_client.api_wrapper import ConfluenceClient
from src.confluence_client.auth import Authenticator
from src.confluence_client.errors import InvalidCredentialsError

__version__ = "0.1.0"

app = typer.Typer(
    name="kb-agent",
    help="""Chat with a Confluence knowledge base from the terminal.

QUICK START:
  kb-agent login --from-env                      # Store verified credentials
  kb-agent chat                                  # Interactive chat
  kb-agent ask "@kb_agent /page 123456"          # One-shot prompt

COMMANDS INSIDE A PROMPT:
  @kb_agent /auth {"token":"...","url":"...","email":"..."}
  @kb_agent /page <pageId>
  @kb_agent /update <pageId> <text to append>

Anything else is answered by the configured chat model.""",
    add_completion=False,
    rich_markup_mode=None,
    no_args_is_help=True,
)

logger = logging.getLogger(__name__)

EXIT_WORDS = {'exit', 'quit'}


@dataclass
class AppState:
    """Global options shared by every subcommand."""
    config_path: Optional[str] = None
    verbosity: int = 0
    logdir: Optional[str] = None
    no_color: bool = False


def _configure_logging(verbosity: int, logdir: Optional[str] = None) -> None:
    """Configure logging based on verbosity level.

    Configures only the 'src' namespace logger to avoid affecting third-party
    libraries. The root logger is left unchanged.

    Args:
        verbosity: Verbosity level (0=WARNING, 1=INFO, 2=DEBUG)
        logdir: Optional directory for log files (creates timestamped log file)
    """
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    app_logger = logging.getLogger("src")
    app_logger.setLevel(level)

    log_format = "%(asctime)s [%(levelname)8s] %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter(log_format, datefmt=date_format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    app_logger.addHandler(console_handler)

    if logdir:
        log_path = Path(logdir)
        log_path.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_path / f"kb-agent_{timestamp}.log"

        file_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        file_formatter = logging.Formatter(file_format, datefmt=date_format)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(file_formatter)
        app_logger.addHandler(file_handler)

        logger.info(f"Logging to file: {log_file}")


def build_dispatcher(config: AgentConfig) -> CommandDispatcher:
    """Wire the session, client, fallback and command table from config."""
    session = Session(FileCredentialStore(config.credential_file))
    client = ConfluenceClient(session, timeout=config.request_timeout)
    fallback = ConversationalFallback(lambda: select_chat_model(config.chat_model))
    return CommandDispatcher(
        session=session,
        client=client,
        fallback=fallback,
        prefix=config.command_prefix,
        commands=build_command_table(config.experimental_commands),
    )


def _setup(ctx: typer.Context):
    """Configure logging and load config for a subcommand.

    Returns:
        (config, output handler, dispatcher)
    """
    state: AppState = ctx.obj or AppState()
    _configure_logging(state.verbosity, state.logdir)
    output = OutputHandler(no_color=state.no_color)

    try:
        config = ConfigLoader.load(state.config_path)
        dispatcher = build_dispatcher(config)
    except (ConfigError, CredentialStoreError) as e:
        logger.error(f"Startup failed: {e}")
        output.error(str(e))
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    return config, output, dispatcher


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"kb-agent version {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to config.yaml (default: ~/.kb-agent/config.yaml)",
        metavar="PATH",
    ),
    verbosity: int = typer.Option(
        0,
        "--verbosity",
        "-v",
        help="Verbosity level: 0=quiet, 1=info, 2=debug",
    ),
    logdir: Optional[str] = typer.Option(
        None,
        "--logdir",
        help="Directory for log files (creates timestamped log file)",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Chat with a Confluence knowledge base from the terminal."""
    ctx.obj = AppState(
        config_path=config_path,
        verbosity=verbosity,
        logdir=logdir,
        no_color=no_color,
    )


@app.command()
def chat(ctx: typer.Context) -> None:
    """Start an interactive chat. Ctrl-C cancels a turn, Ctrl-D quits."""
    config, output, dispatcher = _setup(ctx)
    output.print(
        f"KB Agent chat. Prefix commands with '{config.command_prefix.strip()}'. "
        "Type 'exit' or press Ctrl-D to quit."
    )

    history: List[ChatTurn] = []
    while True:
        try:
            line = output.console.input("[bold blue]>[/bold blue] ")
        except EOFError:
            break
        except KeyboardInterrupt:
            output.print("")
            break

        if line.strip().lower() in EXIT_WORDS:
            break
        if not line.strip():
            continue

        recorder = RecordingStream(forward=output)
        try:
            dispatcher.dispatch(line, history, recorder)
        except KeyboardInterrupt:
            output.end_response()
            output.warning("Cancelled")
            continue
        output.end_response()

        history.append(RequestTurn(prompt=line))
        history.append(recorder.to_turn())

    raise typer.Exit(ExitCode.SUCCESS)


@app.command()
def ask(
    ctx: typer.Context,
    prompt: str = typer.Argument(..., help="Prompt or command, e.g. '@kb_agent /page 123'"),
) -> None:
    """Handle a single prompt and exit."""
    _, output, dispatcher = _setup(ctx)

    result = dispatcher.dispatch(prompt, [], output)
    output.end_response()

    raise typer.Exit(ExitCode.SUCCESS if result.success else ExitCode.GENERAL_ERROR)


@app.command()
def login(
    ctx: typer.Context,
    from_env: bool = typer.Option(
        False,
        "--from-env",
        help="Read CONFLUENCE_URL, CONFLUENCE_USER and CONFLUENCE_API_TOKEN (.env supported)",
    ),
    url: Optional[str] = typer.Option(None, "--url", help="Confluence site URL"),
    email: Optional[str] = typer.Option(None, "--email", help="Account email"),
    token: Optional[str] = typer.Option(None, "--token", help="API token"),
) -> None:
    """Verify and store Confluence credentials (same as the /auth command)."""
    config, output, dispatcher = _setup(ctx)

    if from_env:
        try:
            creds = Authenticator().get_credentials()
        except (InvalidCredentialsError, ValueError) as e:
            output.error(str(e))
            raise typer.Exit(ExitCode.AUTH_ERROR)
        payload = creds.as_dict()
    else:
        payload = {'token': token, 'url': url, 'email': email}
        missing = [name for name, value in payload.items() if not value]
        if missing:
            output.error(
                f"Missing option(s): {', '.join('--' + name for name in missing)} "
                "(or use --from-env)"
            )
            raise typer.Exit(ExitCode.GENERAL_ERROR)

    prompt = f"{config.command_prefix}/auth {json.dumps(payload)}"
    with output.spinner("Verifying credentials..."):
        result = dispatcher.dispatch(prompt, [], output)
    output.end_response()

    raise typer.Exit(ExitCode.SUCCESS if result.success else ExitCode.AUTH_ERROR)


@app.command()
def logout(ctx: typer.Context) -> None:
    """Remove the stored Confluence credentials."""
    _, output, dispatcher = _setup(ctx)

    try:
        dispatcher.session.clear()
    except CredentialStoreError as e:
        output.error(str(e))
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    output.success("Stored credentials removed")
    raise typer.Exit(ExitCode.SUCCESS)


def main() -> None:
    """Main entry point for the CLI application."""
    app()


# Allow running as: python -m src.cli.main
if __name__ == "__main__":
    main()
