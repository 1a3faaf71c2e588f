"""Stage handler registry."""

from __future__ import annotations

import logging

from .errors import ConfigurationError
from .handlers import DEFAULT_HANDLERS, StageHandler
from .models import DialogueStage

logger = logging.getLogger(__name__)


class StageHandlerRegistry:
    """Maps each dialogue stage to the handler responsible for it."""

    def __init__(self) -> None:
        self._handlers: dict[DialogueStage, StageHandler] = {}

    @classmethod
    def with_defaults(cls) -> StageHandlerRegistry:
        """Registry holding the built-in handler for every active stage."""
        registry = cls()
        for handler_cls in DEFAULT_HANDLERS:
            registry.register(handler_cls())
        return registry

    def register(self, handler: StageHandler, replace: bool = False) -> None:
        stage = handler.stage
        if stage in self._handlers and not replace:
            raise ConfigurationError(
                ConfigurationError.DUPLICATE_HANDLER,
                f"a handler for stage {stage.value!r} is already registered",
            )
        if stage in self._handlers:
            logger.info(
                "Replacing %s handler %s with %s",
                stage.value,
                type(self._handlers[stage]).__name__,
                type(handler).__name__,
            )
        self._handlers[stage] = handler

    def get(self, stage: DialogueStage) -> StageHandler | None:
        return self._handlers.get(stage)

    def has(self, stage: DialogueStage) -> bool:
        return stage in self._handlers

    def registered_stages(self) -> list[DialogueStage]:
        return list(self._handlers)
