"""Persistence boundary.

The orchestrator never touches storage. Hosts persist the returned state and
turns through a ConversationStore; appends are compare-and-append so two
concurrent turns on one conversation cannot both land.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol, Sequence

from .errors import ConcurrentModificationError, ConversationClosedError, ConversationNotFoundError
from .models import DialogueState, Turn
from .usage import TokenUsageReport

logger = logging.getLogger(__name__)


@dataclass
class ConversationRecord:
    """What a store keeps for one conversation."""

    conversation_id: str
    turns: list[Turn] = field(default_factory=list)
    closed: bool = False
    usage: TokenUsageReport = field(default_factory=TokenUsageReport.empty)
    state: Optional[DialogueState] = None


class ConversationStore(Protocol):
    async def get_conversation(self, conversation_id: str) -> ConversationRecord: ...

    async def append_turns(
        self,
        conversation_id: str,
        turns: Sequence[Turn],
        ended: bool,
        usage: TokenUsageReport,
        expected_turn_count: Optional[int] = None,
    ) -> ConversationRecord: ...


class InMemoryConversationStore:
    """Reference ConversationStore backed by a dict and one asyncio.Lock."""

    def __init__(self) -> None:
        self._records: dict[str, ConversationRecord] = {}
        self._lock = asyncio.Lock()

    async def create_conversation(self, conversation_id: str) -> ConversationRecord:
        async with self._lock:
            if conversation_id in self._records:
                raise ValueError(f"conversation {conversation_id!r} already exists")
            record = ConversationRecord(conversation_id=conversation_id)
            self._records[conversation_id] = record
            return _snapshot(record)

    async def get_conversation(self, conversation_id: str) -> ConversationRecord:
        async with self._lock:
            return _snapshot(self._get(conversation_id))

    async def append_turns(
        self,
        conversation_id: str,
        turns: Sequence[Turn],
        ended: bool,
        usage: TokenUsageReport,
        expected_turn_count: Optional[int] = None,
    ) -> ConversationRecord:
        """Append turns, fold usage into the running total, close if ended.

        ``expected_turn_count`` is the turn count the caller read; a mismatch
        means another writer got there first.
        """
        async with self._lock:
            record = self._get(conversation_id)
            if record.closed:
                raise ConversationClosedError(f"conversation {conversation_id!r} is closed")
            if expected_turn_count is not None and expected_turn_count != len(record.turns):
                raise ConcurrentModificationError(
                    f"conversation {conversation_id!r} has {len(record.turns)} turns, "
                    f"expected {expected_turn_count}"
                )
            record.turns.extend(turns)
            record.usage = record.usage.merge(usage)
            if ended:
                record.closed = True
                logger.info("Conversation %s closed after %d turns", conversation_id, len(record.turns))
            return _snapshot(record)

    async def save_state(self, conversation_id: str, state: DialogueState) -> None:
        async with self._lock:
            self._get(conversation_id).state = state

    async def load_state(self, conversation_id: str) -> Optional[DialogueState]:
        async with self._lock:
            return self._get(conversation_id).state

    def _get(self, conversation_id: str) -> ConversationRecord:
        try:
            return self._records[conversation_id]
        except KeyError:
            raise ConversationNotFoundError(conversation_id) from None


def _snapshot(record: ConversationRecord) -> ConversationRecord:
    return ConversationRecord(
        conversation_id=record.conversation_id,
        turns=list(record.turns),
        closed=record.closed,
        usage=record.usage,
        state=record.state,
    )
