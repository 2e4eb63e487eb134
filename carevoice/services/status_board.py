"""Status projection: combined component state -> one Status value."""

import logging
from typing import Optional

from pubsub import pub

from ..models.events import (
    CAPABILITY_TOPIC,
    DISPATCH_PHASE_TOPIC,
    SESSION_PHASE_TOPIC,
    STATUS_TOPIC,
    SYNTHESIS_PHASE_TOPIC,
)
from ..models.status import (
    ComponentState,
    DispatchPhase,
    SessionPhase,
    Status,
    StatusSnapshot,
    SynthesisPhase,
)

logger = logging.getLogger(__name__)


_SESSION_STATUS = {
    SessionPhase.IDLE: Status.IDLE,
    SessionPhase.LISTENING: Status.LISTENING,
    SessionPhase.NETWORK_ERROR: Status.NETWORK_ERROR,
    SessionPhase.PERMISSION_DENIED: Status.PERMISSION_DENIED,
    SessionPhase.ERROR: Status.ERROR,
}

_DISPATCH_STATUS = {
    DispatchPhase.TRANSLATING: Status.TRANSLATING,
    DispatchPhase.TRANSLATED: Status.TRANSLATED,
    DispatchPhase.FAILED: Status.ERROR,
}

_SYNTHESIS_STATUS = {
    SynthesisPhase.FAILED: Status.ERROR,
}


def _contribution(state: ComponentState) -> Optional[Status]:
    for table in (_SESSION_STATUS, _DISPATCH_STATUS, _SYNTHESIS_STATUS):
        if state.phase in table:
            return table[state.phase]
    return None


def project_status(snapshot: StatusSnapshot) -> Status:
    """Map the combined state to a Status.

    ``no-capability`` absorbs everything else. Otherwise the component that
    changed most recently and has something to say decides.
    """
    if not snapshot.capture_available:
        return Status.NO_CAPABILITY

    candidates = sorted(
        (snapshot.session, snapshot.dispatch, snapshot.synthesis),
        key=lambda state: state.sequence,
        reverse=True,
    )
    for state in candidates:
        status = _contribution(state)
        if status is not None:
            return status
    return Status.IDLE


class StatusBoard:
    """Tracks component phases and publishes the projected Status on change."""

    def __init__(self, status_topic: str = STATUS_TOPIC):
        self.status_topic = status_topic
        self.snapshot = StatusSnapshot()
        self.status = project_status(self.snapshot)
        self._sequence = 0

        pub.subscribe(self._on_capability, CAPABILITY_TOPIC)
        pub.subscribe(self._on_session_phase, SESSION_PHASE_TOPIC)
        pub.subscribe(self._on_dispatch_phase, DISPATCH_PHASE_TOPIC)
        pub.subscribe(self._on_synthesis_phase, SYNTHESIS_PHASE_TOPIC)
        logger.info("StatusBoard initialized")

    def _on_capability(self, available: bool) -> None:
        self.snapshot.capture_available = available
        self._recompute()

    def _on_session_phase(self, phase: SessionPhase) -> None:
        self._update(self.snapshot.session, phase)

    def _on_dispatch_phase(self, phase: DispatchPhase) -> None:
        self._update(self.snapshot.dispatch, phase)

    def _on_synthesis_phase(self, phase: SynthesisPhase) -> None:
        self._update(self.snapshot.synthesis, phase)

    def _update(self, state: ComponentState, phase) -> None:
        self._sequence += 1
        state.phase = phase
        state.sequence = self._sequence
        self._recompute()

    def _recompute(self) -> None:
        status = project_status(self.snapshot)
        if status is self.status:
            return
        logger.info(f"Status: {self.status.value} -> {status.value}")
        self.status = status
        pub.sendMessage(self.status_topic, status=status)

    def shutdown(self) -> None:
        for listener, topic in (
            (self._on_capability, CAPABILITY_TOPIC),
            (self._on_session_phase, SESSION_PHASE_TOPIC),
            (self._on_dispatch_phase, DISPATCH_PHASE_TOPIC),
            (self._on_synthesis_phase, SYNTHESIS_PHASE_TOPIC),
        ):
            try:
                pub.unsubscribe(listener, topic)
            except Exception as e:
                logger.warning(f"Error during unsubscribe: {e}")
