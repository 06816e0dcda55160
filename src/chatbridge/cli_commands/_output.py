"""Shared CLI input loading and output formatters."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from chatbridge.core.interface.flat import FlatMessage  # noqa: TC001

console = Console()


def configure_logging(verbose: bool) -> None:
    """Route library logging through rich; debug level when *verbose*."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def load_document(path: Path) -> Any:
    """Read a JSON or YAML document.

    JSON is a subset of YAML, so one parser covers both.
    """
    return yaml.safe_load(path.read_text(encoding="utf-8"))


def print_payload(data: Any) -> None:
    """Pretty-print a JSON-compatible payload."""
    console.print_json(json.dumps(data, default=str))


def print_messages_table(messages: list[FlatMessage]) -> None:
    """Pretty-print a flat message list as a table."""
    table = Table(title="Messages")
    table.add_column("#", justify="right")
    table.add_column("Role", style="cyan")
    table.add_column("Content")
    table.add_column("Tool calls / call id")

    for i, msg in enumerate(messages):
        if msg.tool_calls:
            calls = ", ".join(f"{tc.function.name} [{tc.id}]" for tc in msg.tool_calls)
        else:
            calls = msg.tool_call_id or "-"
        table.add_row(str(i), msg.role, _truncate(msg.content or ""), calls)

    console.print(table)


def fail(message: str, exc: BaseException) -> None:
    """Print an error line in red."""
    console.print(f"[red]{message}:[/red] {escape(str(exc))}", highlight=False)


def _truncate(text: str, max_len: int = 60) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
