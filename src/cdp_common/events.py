"""In-memory event log.

Components emit events during a request; the application layer drains them
after the request and appends them to the persistent journal. The log's
state is snapshotted with every other component so a rolled-back request
leaves no events behind.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any

from src.cdp_common.clock import Clock
from src.cdp_common.enums import EventType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerEvent:
    sequence: int
    event_type: EventType
    block_time: int
    payload: dict[str, Any]


@dataclass
class EventLogState:
    pending: list[LedgerEvent] = field(default_factory=list)
    next_sequence: int = 1


class EventLog:
    def __init__(self, clock: Clock) -> None:
        self._clock = clock
        self.state = EventLogState()

    def emit(self, event_type: EventType, **payload: Any) -> LedgerEvent:
        event = LedgerEvent(
            sequence=self.state.next_sequence,
            event_type=event_type,
            block_time=self._clock.now(),
            payload=payload,
        )
        self.state.next_sequence += 1
        self.state.pending.append(event)
        logger.debug("event #%d %s %s", event.sequence, event_type.value, payload)
        return event

    def resume_after(self, sequence: int) -> None:
        """Continue numbering after *sequence*, the last one already journaled.

        Events emitted before the journal was consulted are renumbered.
        """
        st = self.state
        st.pending = [
            replace(e, sequence=sequence + i) for i, e in enumerate(st.pending, start=1)
        ]
        st.next_sequence = sequence + len(st.pending) + 1
        logger.info("Event sequence resumes at %d", st.next_sequence)

    def peek(self) -> list[LedgerEvent]:
        return list(self.state.pending)

    def drain(self) -> list[LedgerEvent]:
        """Return and clear the events emitted since the last drain."""
        events = self.state.pending
        self.state.pending = []
        return events

    def of_type(self, event_type: EventType) -> list[LedgerEvent]:
        return [e for e in self.state.pending if e.event_type == event_type]
