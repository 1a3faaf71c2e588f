"""Error taxonomy for the Socratic Dialogue Engine.

Extracted data that cannot satisfy a handler's minimal needs (for example no
stance text when V1 is established) is not an error class here: the handler
recovers in place, recording the student's raw input as the stance, and the
turn proceeds.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .usage import TokenUsageReport


class DialogueError(Exception):
    """Base class for every error raised by this package."""


class ExecutionErrorKind(str, Enum):
    """Why a model call failed."""

    TIMEOUT = "timeout"
    QUOTA_EXCEEDED = "quota_exceeded"
    INVALID_OUTPUT = "invalid_output"
    PROVIDER_ERROR = "provider_error"


class ExecutionError(DialogueError):
    """A model call failed.

    ``usage`` carries whatever token accounting exists for the failed
    invocation: the failed call itself (when the provider reported it before
    the failure was detected) plus every call that completed before it.
    """

    def __init__(
        self,
        kind: ExecutionErrorKind,
        message: str = "",
        usage: TokenUsageReport | None = None,
    ) -> None:
        from .usage import TokenUsageReport

        self.kind = kind
        self.usage = usage if usage is not None else TokenUsageReport.empty()
        super().__init__(f"{kind.value}: {message}" if message else kind.value)

    @property
    def retryable(self) -> bool:
        """Whether the caller may retry the same invocation unchanged."""
        return self.kind != ExecutionErrorKind.INVALID_OUTPUT


class ConfigurationError(DialogueError):
    """Programmer error in how the orchestrator was wired."""

    UNREGISTERED_STAGE = "UNREGISTERED_STAGE"
    DUPLICATE_HANDLER = "DUPLICATE_HANDLER"
    CALL_LIMIT_EXCEEDED = "CALL_LIMIT_EXCEEDED"

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        super().__init__(f"{code}: {message}")


class SessionStateError(DialogueError):
    """Operation not valid for the session's current stage."""


class StoreError(DialogueError):
    """Base class for persistence boundary failures."""


class ConversationNotFoundError(StoreError):
    pass


class ConversationClosedError(StoreError):
    """Append attempted on a conversation that has already ended."""


class ConcurrentModificationError(StoreError):
    """The stored conversation moved since the caller read it."""
