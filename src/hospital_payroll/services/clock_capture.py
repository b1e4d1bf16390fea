"""Clock capture: the check-in/check-out alternation rule and the scanner station.

A day's clock events must alternate CHECK_IN, CHECK_OUT, CHECK_IN, ...
starting with CHECK_IN. The station drives one scan at a time through
READY -> SCANNING -> SUCCESS | ERROR -> READY.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from enum import Enum

from hospital_payroll.calculators.types import ClockEvent, ClockEventKind
from hospital_payroll.exceptions import UnknownEmployeeError
from hospital_payroll.services.state_machine import InvalidTransitionError

logger = logging.getLogger(__name__)

ALREADY_CHECKED_IN = "already checked in"
MUST_CHECK_IN_FIRST = "must check in first"


def alternation_violation(
    kind: ClockEventKind, latest_kind: ClockEventKind | None
) -> str | None:
    """Return the reason an event of this kind may not follow latest_kind, or None."""
    if kind == ClockEventKind.CHECK_IN and latest_kind == ClockEventKind.CHECK_IN:
        return ALREADY_CHECKED_IN
    if kind == ClockEventKind.CHECK_OUT and latest_kind != ClockEventKind.CHECK_IN:
        return MUST_CHECK_IN_FIRST
    return None


class ScannerState(str, Enum):
    READY = "READY"
    SCANNING = "SCANNING"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"


ClockRecorder = Callable[[str, ClockEventKind, datetime], Awaitable[ClockEvent]]


class ClockCaptureStation:
    """Scanner station state machine.

    Allowed transitions:
    - READY → SCANNING (begin_scan)
    - SCANNING → SUCCESS | ERROR (submit)
    - SUCCESS | ERROR → READY (reset)

    The clock and the recorder are injected. The recorder appends the event
    and raises UnknownEmployeeError or InvalidTransitionError on rejection,
    in which case nothing is appended and the station lands in ERROR.
    """

    VALID_TRANSITIONS: dict[ScannerState, list[ScannerState]] = {
        ScannerState.READY: [ScannerState.SCANNING],
        ScannerState.SCANNING: [ScannerState.SUCCESS, ScannerState.ERROR],
        ScannerState.SUCCESS: [ScannerState.READY],
        ScannerState.ERROR: [ScannerState.READY],
    }

    def __init__(
        self,
        recorder: ClockRecorder,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._recorder = recorder
        self._clock = clock
        self.state = ScannerState.READY
        self.last_event: ClockEvent | None = None
        self.error: str | None = None

    def begin_scan(self) -> None:
        self._transition(ScannerState.SCANNING)
        self.last_event = None
        self.error = None

    async def submit(self, employee_id: str, kind: ClockEventKind) -> ClockEvent | None:
        """Record a scanned event. Returns the event, or None when rejected."""
        if self.state != ScannerState.SCANNING:
            raise InvalidTransitionError(self.state.value, "SUBMIT", "no scan in progress")

        try:
            event = await self._recorder(employee_id, kind, self._clock())
        except UnknownEmployeeError as e:
            return self._fail(f"unknown employee '{e.entity_id}'")
        except InvalidTransitionError as e:
            return self._fail(e.reason or str(e))

        self._transition(ScannerState.SUCCESS)
        self.last_event = event
        return event

    def reset(self) -> None:
        self._transition(ScannerState.READY)

    def _fail(self, reason: str) -> None:
        logger.info("Clock capture rejected: %s", reason)
        self._transition(ScannerState.ERROR)
        self.error = reason
        return None

    def _transition(self, to_state: ScannerState) -> None:
        if to_state not in self.VALID_TRANSITIONS[self.state]:
            raise InvalidTransitionError(self.state.value, to_state.value)
        self.state = to_state
