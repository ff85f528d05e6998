"""Diagnostics channel for daex_core.

The SDK never writes to stdout. Everything it has to say -- TLS setup
failures, insecure-mode warnings, network logging -- goes to stderr
through a Rich :class:`~rich.console.Console`.

* **Colour control** -- respects ``NO_COLOR`` and ``TERM=dumb``.
* **Levels** -- ``debug`` (only when verbose), ``info`` (suppressed when
  quiet), ``warning`` and ``error`` (never suppressed).

The module exposes two layers:

1. :class:`OutputManager` -- holds the console and the quiet/verbose flags.
   Host applications create one and install it with :func:`set_output`.
2. Module-level convenience functions (:func:`info`, :func:`error`,
   :func:`debug`, ...) that delegate to the global instance so callers do
   not need to pass the manager around.
"""

from __future__ import annotations

import os
import sys
from typing import IO, Optional

from rich.console import Console
from rich.markup import escape


class OutputManager:
    """Routes SDK diagnostics to stderr.

    Args:
        no_color: Disable all colour and Rich markup.
        quiet: Suppress informational messages.
        verbose: Enable debug-level messages (network logging included).
        file: Stream to write to. Defaults to :data:`sys.stderr`.
    """

    def __init__(
        self,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
        file: Optional[IO[str]] = None,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose
        self._file = file
        self._stderr = Console(
            file=file or sys.stderr,
            no_color=self._no_color,
            stderr=file is None,
            highlight=False,
        )

    @property
    def is_quiet(self) -> bool:
        """Whether quiet mode is enabled."""
        return self._quiet

    @property
    def is_verbose(self) -> bool:
        """Whether verbose mode is enabled."""
        return self._verbose

    def info(self, message: str) -> None:
        """Print an informational message. Suppressed by ``quiet``."""
        if not self._quiet:
            self._emit(message, escape(message))

    def warning(self, message: str) -> None:
        """Print a yellow warning. NOT suppressed by ``quiet``."""
        self._emit(
            f"Warning: {message}",
            f"[yellow]Warning:[/yellow] {escape(message)}",
        )

    def error(self, message: str) -> None:
        """Print a bold-red error. Never suppressed."""
        self._emit(
            f"Error: {message}",
            f"[bold red]Error:[/bold red] {escape(message)}",
        )

    def debug(self, message: str) -> None:
        """Print a debug message. Only shown when ``verbose`` is active."""
        if self._verbose:
            self._emit(
                f"[debug] {message}",
                f"[dim]\\[debug] {escape(message)}[/dim]",
            )

    def _emit(self, plain: str, markup: str) -> None:
        """Write *plain* when colour is disabled, otherwise the Rich *markup*."""
        if self._no_color:
            print(plain, file=self._file or sys.stderr, flush=True)
        else:
            self._stderr.print(markup)


def _should_disable_color() -> bool:
    """Return True when NO_COLOR is set (any value) or TERM=dumb."""
    if os.environ.get("NO_COLOR") is not None:
        return True
    if os.environ.get("TERM") == "dumb":
        return True
    return False


# ------------------------------------------------------------------ #
# Global output instance
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the global :class:`OutputManager`, creating a default one lazily."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    """Install *output* as the global :class:`OutputManager` instance."""
    global _output
    _output = output


def reset_output() -> None:
    """Reset the global :class:`OutputManager` to ``None``.

    Primarily useful in test suites to ensure a clean state between tests.
    """
    global _output
    _output = None


def info(message: str) -> None:
    """Print info message via the global OutputManager."""
    get_output().info(message)


def warning(message: str) -> None:
    """Print warning via the global OutputManager."""
    get_output().warning(message)


def error(message: str) -> None:
    """Print error via the global OutputManager."""
    get_output().error(message)


def debug(message: str) -> None:
    """Print debug message via the global OutputManager."""
    get_output().debug(message)
