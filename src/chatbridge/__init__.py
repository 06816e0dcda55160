"""chatbridge — translate between turn-structured and flat chat-completion protocols."""

from __future__ import annotations

from typing import TYPE_CHECKING

__version__ = "0.1.0"

if TYPE_CHECKING:
    from chatbridge.core.interface.client import BridgeClient as BridgeClient

_CLIENT_EXPORTS = {
    "BridgeClient": "chatbridge.core.interface.client",
}


def __getattr__(name: str) -> object:
    module_path = _CLIENT_EXPORTS.get(name)
    if module_path is not None:
        import importlib

        mod = importlib.import_module(module_path)
        return getattr(mod, name)
    raise AttributeError(f"module 'chatbridge' has no attribute {name!r}")
