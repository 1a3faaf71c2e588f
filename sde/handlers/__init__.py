"""Stage handlers: one per active dialogue stage."""

from .asking_stance import AskingStanceHandler
from .base import StageContext, StageHandler, format_stage_response
from .case_challenge import CaseChallengeHandler
from .closure import ClosureHandler
from .principle_reasoning import PrincipleReasoningHandler

DEFAULT_HANDLERS = (
    AskingStanceHandler,
    CaseChallengeHandler,
    PrincipleReasoningHandler,
    ClosureHandler,
)

__all__ = [
    "DEFAULT_HANDLERS",
    "AskingStanceHandler",
    "CaseChallengeHandler",
    "ClosureHandler",
    "PrincipleReasoningHandler",
    "StageContext",
    "StageHandler",
    "format_stage_response",
]
