"""Output utilities: JSON responses on stdout, messages and logs on stderr.

stdout belongs to the CI scheduler and only ever carries the JSON response.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

error_console = Console(stderr=True)


def emit(data: Any) -> None:
    """Write a response as JSON to stdout."""
    if hasattr(data, "dump"):
        data = data.dump()
    elif hasattr(data, "model_dump"):
        data = data.model_dump(exclude_none=True)
    print(json.dumps(data, indent=2, default=str))


def error(msg: str) -> None:
    error_console.print(f"[red]Error:[/red] {escape(msg)}", highlight=False)


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Route the ``prcomment`` logger through rich on stderr."""
    logger = logging.getLogger("prcomment")
    logger.handlers.clear()
    handler = RichHandler(console=error_console, show_path=False, markup=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger
