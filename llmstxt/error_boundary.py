"""Error boundary for CLI entry points.

Known failures are shown as a single ``Error: ...`` line on stderr and exit
with status 1. click's own exceptions and explicit exits pass through.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from typing import Any, TypeVar

import click

from llmstxt.errors import LlmstxtError

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def cli_error_boundary(func: F) -> F:
    """Catch expected exceptions and report them without a stack trace.

    Catches:
        - LlmstxtError: registry, fetch and lookup failures
        - OSError: filesystem failures such as a lockfile that cannot be written
        - Exception: anything else, logged with a traceback at debug level

    Example:
        @main.command()
        @cli_error_boundary
        def my_command():
            ...
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except (click.ClickException, click.exceptions.Exit, click.Abort, SystemExit):
            raise
        except LlmstxtError as e:
            click.echo(f"Error: {e}", err=True)
            raise SystemExit(1) from None
        except OSError as e:
            click.echo(f"Error: {e}", err=True)
            raise SystemExit(1) from None
        except Exception as e:
            logger.debug("Unexpected error", exc_info=True)
            click.echo(f"Error: {e}", err=True)
            raise SystemExit(1) from None

    return wrapper  # type: ignore[return-value]
