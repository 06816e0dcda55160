"""Translation subcommands: ``request``, ``response``, ``chunk``, ``sanitize``.

Each command reads a JSON or YAML document and prints the translated form.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import click
import yaml
from pydantic import TypeAdapter, ValidationError

from chatbridge.cli_commands._output import (
    fail,
    load_document,
    print_messages_table,
    print_payload,
)
from chatbridge.core.interface.config import TranslatorOptions
from chatbridge.core.interface.errors import TranslationError
from chatbridge.core.interface.flat import FlatMessage
from chatbridge.core.interface.sanitizer import sanitize_history
from chatbridge.core.interface.streaming import ToolCallAssembler
from chatbridge.core.interface.transpilers.inbound import convert_chunk, convert_response
from chatbridge.core.interface.transpilers.outbound import convert_request

_EXPECTED_ERRORS = (TranslationError, ValidationError, ValueError, yaml.YAMLError, OSError)

_messages_adapter = TypeAdapter(list[FlatMessage])

_skip_option = click.option(
    "--skip-malformed",
    is_flag=True,
    help="Drop tool calls with invalid JSON arguments instead of failing.",
)


def _options(skip_malformed: bool) -> TranslatorOptions:
    return TranslatorOptions(malformed_arguments="skip" if skip_malformed else "raise")


def _load(path: str) -> Any:
    try:
        return load_document(Path(path))
    except (yaml.YAMLError, OSError) as exc:
        fail("Error loading input", exc)
        sys.exit(1)


@click.command("request")
@click.argument("request_file", type=click.Path(exists=True))
@click.option("--model", "-m", default=None, help="Target model (defaults to the file's 'model').")
def request(request_file: str, model: str | None) -> None:
    """Translate a turn-structured request into a flat request.

    REQUEST_FILE holds {contents, config?, tools?, model?}.
    """
    data = _load(request_file)
    try:
        flat = convert_request(data, model)
    except _EXPECTED_ERRORS as exc:
        fail("Translation failed", exc)
        sys.exit(1)
    print_payload(flat.to_wire())


@click.command("response")
@click.argument("response_file", type=click.Path(exists=True))
@_skip_option
def response(response_file: str, skip_malformed: bool) -> None:
    """Translate a complete flat response into a turn-structured response."""
    data = _load(response_file)
    try:
        result = convert_response(data, options=_options(skip_malformed))
    except _EXPECTED_ERRORS as exc:
        fail("Translation failed", exc)
        sys.exit(1)
    print_payload(result.to_wire())


@click.command("chunk")
@click.argument("chunk_file", type=click.Path(exists=True))
@click.option(
    "--no-assemble",
    is_flag=True,
    help="Translate each chunk as-is, without assembling tool-call fragments.",
)
@_skip_option
def chunk(chunk_file: str, no_assemble: bool, skip_malformed: bool) -> None:
    """Translate a recorded stream (one chunk or a list of chunks).

    Chunks are translated in file order, one turn-structured fragment each.
    """
    data = _load(chunk_file)
    chunks: list[Any] = data if isinstance(data, list) else [data]
    options = _options(skip_malformed)
    assembler = None if no_assemble else ToolCallAssembler()

    fragments: list[dict[str, Any]] = []
    try:
        for raw in chunks:
            fed = raw if assembler is None else assembler.feed(raw)
            fragments.append(convert_chunk(fed, options=options).to_wire())
        tail = assembler.flush() if assembler is not None else None
        if tail is not None:
            fragments.append(convert_chunk(tail, options=options).to_wire())
    except _EXPECTED_ERRORS as exc:
        fail("Translation failed", exc)
        sys.exit(1)
    print_payload(fragments)


@click.command("sanitize")
@click.argument("messages_file", type=click.Path(exists=True))
@click.option("--no-merge", is_flag=True, help="Skip merging consecutive assistant messages.")
@click.option("--table", "as_table", is_flag=True, help="Show the result as a table.")
def sanitize(messages_file: str, no_merge: bool, as_table: bool) -> None:
    """Repair a flat message list before resubmission.

    MESSAGES_FILE holds a list of messages, or a request with a 'messages' key.
    """
    data = _load(messages_file)
    if isinstance(data, dict) and "messages" in data:
        data = data["messages"]
    try:
        messages = _messages_adapter.validate_python(data)
    except ValidationError as exc:
        fail("Invalid message list", exc)
        sys.exit(1)

    cleaned = sanitize_history(messages, merge=not no_merge)

    if as_table:
        print_messages_table(cleaned)
    else:
        print_payload([m.to_wire() for m in cleaned])
