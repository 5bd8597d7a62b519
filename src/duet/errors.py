"""Exception hierarchy for duet.

All exceptions derive from DuetError so callers at a boundary (transport,
server routes, CLI) can catch every duet failure with one clause.
Generation-path errors never cross the transport boundary as exceptions;
they are normalized into error callbacks or failed results there.
"""


class DuetError(Exception):
    """Base exception for all duet errors."""


class ConfigurationError(DuetError):
    """A credential or model needed for generation is missing or invalid.

    The message explains the problem; ``remediation`` tells the user how to
    fix it (which variable to set, where to get a key).
    """

    def __init__(self, message: str, remediation: str | None = None) -> None:
        self.remediation = remediation
        super().__init__(message)

    def __str__(self) -> str:
        base = super().__str__()
        if self.remediation:
            return f"{base} {self.remediation}"
        return base


class TransportError(DuetError):
    """Network or protocol failure talking to the generation backend."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class EmptyResultError(DuetError):
    """Generation succeeded transport-wise but produced no usable text."""

    def __init__(self, message: str = "Received empty response") -> None:
        super().__init__(message)


class TurnRejectedError(DuetError):
    """A turn was requested while the turn permit is held by a generation."""

    def __init__(self, message: str, holder: str | None = None) -> None:
        self.holder = holder
        super().__init__(message)


class InvalidRequestError(DuetError):
    """A generation request is missing a model or has a malformed history."""
