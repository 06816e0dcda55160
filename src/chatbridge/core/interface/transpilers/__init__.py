"""Direction-specific translators."""

from chatbridge.core.interface.transpilers.inbound import (
    convert_chunk,
    convert_response,
    map_finish_reason,
)
from chatbridge.core.interface.transpilers.outbound import convert_request, convert_tools

__all__ = [
    "convert_chunk",
    "convert_request",
    "convert_response",
    "convert_tools",
    "map_finish_reason",
]
