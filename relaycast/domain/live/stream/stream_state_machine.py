"""Live stream state machine for managing status transitions."""

from relaycast.schemas import LiveStreamStatus
from relaycast.utils.app_errors import AppErrorCode, ConflictError


class StreamStateMachine:
    """State machine for live stream status.

    State flow with triggers:
    - INACTIVE (stream created) -> LIVE (start)
    - LIVE -> INACTIVE (stop) | ENDED (end)
    - ENDED -> LIVE (start)

    No state is terminal: a stopped or ended stream is started again without
    being recreated. Repeated start/stop calls are handled by the lifecycle
    manager before a transition is requested, so self-transitions are not
    listed here.
    """

    TRANSITIONS: dict[LiveStreamStatus, set[LiveStreamStatus]] = {
        LiveStreamStatus.INACTIVE: {LiveStreamStatus.LIVE},
        LiveStreamStatus.LIVE: {LiveStreamStatus.INACTIVE, LiveStreamStatus.ENDED},
        LiveStreamStatus.ENDED: {LiveStreamStatus.LIVE},
    }

    @classmethod
    def can_transition(cls, current: LiveStreamStatus, new: LiveStreamStatus) -> bool:
        """Check if state transition is valid.

        Args:
            current: Current stream status
            new: Target status to transition to

        Returns:
            True if transition is valid, False otherwise
        """
        return new in cls.TRANSITIONS.get(current, set())

    @classmethod
    def get_valid_transitions(cls, state: LiveStreamStatus) -> set[LiveStreamStatus]:
        return cls.TRANSITIONS.get(state, set())

    @classmethod
    def get_valid_sources(cls, target: LiveStreamStatus) -> set[LiveStreamStatus]:
        """Get all states that can transition to the target state."""
        return {state for state, targets in cls.TRANSITIONS.items() if target in targets}

    @classmethod
    def ensure_transition(cls, current: LiveStreamStatus, new: LiveStreamStatus) -> None:
        """Raise ConflictError unless `current -> new` is allowed."""
        if not cls.can_transition(current, new):
            raise ConflictError(
                f"Cannot transition stream from {current} to {new}",
                errcode=AppErrorCode.E_INVALID_TRANSITION,
            )
