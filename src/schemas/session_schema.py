"""Per-buyer intake session state."""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from src.conversation.slot_manager import SlotManager
from src.conversation.state_machine import IntakeState, IntakeStateMachine


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SessionData:
    """
    One buyer's in-progress intake conversation.

    The state machine owns the dialogue position and the slot manager owns
    the request draft; the engine keeps the two in step.
    """
    address: str
    machine: IntakeStateMachine = field(default_factory=IntakeStateMachine)
    slots: SlotManager = field(default_factory=SlotManager)
    created_at: datetime = field(default_factory=_utcnow)
    touched_at: datetime = field(default_factory=_utcnow)
    turns: int = 0

    @property
    def state(self) -> IntakeState:
        return self.machine.current_state

    def touch(self) -> None:
        self.touched_at = _utcnow()
        self.turns += 1
