"""Turn-structured <-> flat chat-completions translation."""

from chatbridge.core.interface.client import BridgeClient
from chatbridge.core.interface.config import ModelConfig, TranslatorOptions
from chatbridge.core.interface.errors import (
    EmptyResponseError,
    MalformedArgumentsError,
    TranslationError,
    UnsupportedRoleError,
)
from chatbridge.core.interface.flat import (
    ChatCompletion,
    ChatCompletionChunk,
    FlatMessage,
    FlatRequest,
    FlatToolCall,
)
from chatbridge.core.interface.sanitizer import (
    clean_orphaned_tool_calls,
    merge_consecutive_assistant_messages,
    sanitize_history,
)
from chatbridge.core.interface.streaming import ToolCallAssembler
from chatbridge.core.interface.transpilers import (
    convert_chunk,
    convert_request,
    convert_response,
    convert_tools,
    map_finish_reason,
)
from chatbridge.core.interface.turns import (
    Candidate,
    FinishReason,
    FunctionCall,
    FunctionCallPart,
    FunctionDeclaration,
    FunctionResponse,
    FunctionResponsePart,
    GenerateContentRequest,
    GenerateContentResponse,
    GenerationConfig,
    Part,
    TextPart,
    Tool,
    Turn,
    UsageMetadata,
)

__all__ = [
    "BridgeClient",
    "Candidate",
    "ChatCompletion",
    "ChatCompletionChunk",
    "EmptyResponseError",
    "FinishReason",
    "FlatMessage",
    "FlatRequest",
    "FlatToolCall",
    "FunctionCall",
    "FunctionCallPart",
    "FunctionDeclaration",
    "FunctionResponse",
    "FunctionResponsePart",
    "GenerateContentRequest",
    "GenerateContentResponse",
    "GenerationConfig",
    "MalformedArgumentsError",
    "ModelConfig",
    "Part",
    "TextPart",
    "Tool",
    "ToolCallAssembler",
    "TranslationError",
    "TranslatorOptions",
    "Turn",
    "UnsupportedRoleError",
    "UsageMetadata",
    "clean_orphaned_tool_calls",
    "convert_chunk",
    "convert_request",
    "convert_response",
    "convert_tools",
    "map_finish_reason",
    "merge_consecutive_assistant_messages",
    "sanitize_history",
]
