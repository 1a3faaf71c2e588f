"""Socratic Dialogue Engine: staged, classifier-driven Socratic dialogues over LLMs."""

from .errors import (
    ConcurrentModificationError,
    ConfigurationError,
    ConversationClosedError,
    ConversationNotFoundError,
    DialogueError,
    ExecutionError,
    ExecutionErrorKind,
    SessionStateError,
    StoreError,
)
from .executor import ExecutionResult, PromptExecutor
from .handlers import StageContext, StageHandler
from .models import (
    DialogueStage,
    DialogueState,
    ModelConfig,
    OrchestratorConfig,
    PrincipleVersion,
    StageResult,
    StanceVersion,
    SubState,
    Trigger,
    Turn,
)
from .orchestrator import DialogueOrchestrator
from .registry import StageHandlerRegistry
from .state import summarize_state
from .store import ConversationRecord, ConversationStore, InMemoryConversationStore
from .usage import TokenUsage, TokenUsageReport

__version__ = "0.1.0"

__all__ = [
    "ConcurrentModificationError",
    "ConfigurationError",
    "ConversationClosedError",
    "ConversationNotFoundError",
    "ConversationRecord",
    "ConversationStore",
    "DialogueError",
    "DialogueOrchestrator",
    "DialogueStage",
    "DialogueState",
    "ExecutionError",
    "ExecutionErrorKind",
    "ExecutionResult",
    "InMemoryConversationStore",
    "ModelConfig",
    "OrchestratorConfig",
    "PrincipleVersion",
    "PromptExecutor",
    "SessionStateError",
    "StageContext",
    "StageHandler",
    "StageHandlerRegistry",
    "StageResult",
    "StanceVersion",
    "StoreError",
    "SubState",
    "TokenUsage",
    "TokenUsageReport",
    "Trigger",
    "Turn",
    "__version__",
]
