"""Command-line interface for the KB agent.

This package provides the `kb-agent` CLI tool, a terminal chat surface
that hosts the command dispatcher with Rich output and logging setup.
"""

from .models import ExitCode
from .output import OutputHandler

__all__ = [
    'ExitCode',
    'OutputHandler',
]
