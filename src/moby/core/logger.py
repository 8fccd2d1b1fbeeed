"""
Moby Core - Structured logging with Rich
"""

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.theme import Theme

MOBY_THEME = Theme({
    "info": "cyan",
    "warning": "yellow",
    "error": "red bold",
    "success": "green",
    "debug": "dim",
    "header": "cyan bold",
    "path": "blue underline",
    "component": "magenta",
})

# Global console
console = Console(theme=MOBY_THEME)


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """Configure global logging through Rich."""
    level = logging.DEBUG if debug else (logging.INFO if verbose else logging.WARNING)

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
        force=True,
    )


class MobyLogger:
    """Structured logger for Moby."""

    def __init__(self, name: str = "moby"):
        self._logger = logging.getLogger(name)

    def header(self, title: str) -> None:
        """Print a section header."""
        console.print()
        console.print("=" * 50, style="cyan")
        console.print(f"   {title}", style="header")
        console.print("=" * 50, style="cyan")

    def info(self, message: str, **kwargs) -> None:
        console.print(f"[info]ℹ️  {escape(message)}[/info]", **kwargs)

    def success(self, message: str, **kwargs) -> None:
        console.print(f"[success]✓ {escape(message)}[/success]", **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        console.print(f"[warning]⚠️  {escape(message)}[/warning]", **kwargs)

    def error(self, message: str, **kwargs) -> None:
        console.print(f"[error]✗ {escape(message)}[/error]", **kwargs)

    def debug(self, message: str) -> None:
        """Debug output goes through stdlib logging so --debug controls it."""
        self._logger.debug(message)

    def step(self, message: str, **kwargs) -> None:
        """Log a process step."""
        console.print(f"  → {escape(message)}", style="dim", **kwargs)

    def component(self, name: str, status: str, success: bool = True) -> None:
        """Log a component status line."""
        icon = "✓" if success else "✗"
        style = "success" if success else "error"
        console.print(f"  [{style}]{icon}[/{style}] [component]{escape(name)}[/component]: {escape(status)}")


# Global logger
log = MobyLogger()


def get_logger(name: str = "moby") -> MobyLogger:
    """Return a logger. Levels and handlers are set once by setup_logging."""
    if name == "moby":
        return log
    return MobyLogger(name)
