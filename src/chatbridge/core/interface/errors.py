"""Shared error types for the translation layer."""


class TranslationError(Exception):
    """Base error for all translation failures."""


class EmptyResponseError(TranslationError):
    """A complete flat response carried no choices to translate."""

    def __init__(self) -> None:
        super().__init__("No choices in chat completion response")


class MalformedArgumentsError(TranslationError):
    """A tool call's ``arguments`` string is not valid JSON."""

    def __init__(self, name: str, arguments: str, detail: str = "") -> None:
        self.name = name
        self.arguments = arguments
        self.detail = detail
        msg = f"Malformed arguments for tool call: {name}"
        if detail:
            msg += f" ({detail})"
        super().__init__(msg)


class UnsupportedRoleError(TranslationError):
    """A turn carries a role that has no flat-schema counterpart."""

    def __init__(self, role: str) -> None:
        self.role = role
        super().__init__(f"Unsupported turn role: {role!r} (expected 'user' or 'model')")
