"""Stream driving helpers — assemble tool-call fragments across chunks.

The chunk translator parses ``function.arguments`` eagerly, one chunk at a
time. Streams split those arguments across many chunks, so the driving loop
buffers the fragments by tool-call ``index`` and releases the completed
calls on the chunk that carries ``finish_reason``.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from chatbridge.core.interface.flat import (
    ChatCompletionChunk,
    ChunkChoice,
    Delta,
    DeltaFunction,
    DeltaToolCall,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _PendingCall:
    id: str | None = None
    name: str | None = None
    fragments: list[str] = field(default_factory=lambda: list[str]())

    def absorb(self, fragment: DeltaToolCall) -> None:
        # id and name arrive on the first fragment; later ones carry arguments only.
        self.id = self.id or fragment.id
        if fragment.function is not None:
            self.name = self.name or fragment.function.name
            if fragment.function.arguments:
                self.fragments.append(fragment.function.arguments)

    def complete(self, index: int) -> DeltaToolCall:
        return DeltaToolCall(
            index=index,
            id=self.id,
            type="function",
            function=DeltaFunction(name=self.name or "", arguments="".join(self.fragments)),
        )


class ToolCallAssembler:
    """Buffers tool-call deltas for one stream.

    Feed every chunk, in arrival order, through :meth:`feed` and translate
    the returned chunk. Text deltas pass through untouched; tool-call
    fragments are withheld until the terminal chunk, which then carries the
    complete calls. Use one assembler per stream.
    """

    def __init__(self) -> None:
        self._pending: dict[int, _PendingCall] = {}

    @property
    def has_pending(self) -> bool:
        return bool(self._pending)

    def feed(self, chunk: ChatCompletionChunk | dict[str, Any]) -> ChatCompletionChunk:
        """Absorb tool-call fragments and return the chunk to translate."""
        parsed = ChatCompletionChunk.model_validate(chunk)
        if not parsed.choices:
            return parsed

        choice = parsed.choices[0]
        for fragment in choice.delta.tool_calls or []:
            self._pending.setdefault(fragment.index, _PendingCall()).absorb(fragment)

        released: list[DeltaToolCall] | None = None
        if choice.finish_reason is not None and self._pending:
            released = self._release()

        delta = choice.delta.model_copy(update={"tool_calls": released})
        rebuilt = choice.model_copy(update={"delta": delta})
        return parsed.model_copy(update={"choices": [rebuilt, *parsed.choices[1:]]})

    def flush(self) -> ChatCompletionChunk | None:
        """Release calls still buffered when a stream ends without a finish reason."""
        if not self._pending:
            return None
        logger.warning("Stream ended with %d unfinished tool call(s)", len(self._pending))
        delta = Delta(tool_calls=self._release())
        return ChatCompletionChunk(choices=[ChunkChoice(delta=delta)])

    def _release(self) -> list[DeltaToolCall]:
        calls = [self._pending[i].complete(i) for i in sorted(self._pending)]
        self._pending.clear()
        return calls
