from src.conversation.slot_manager import SlotManager, SlotStatus
from src.conversation.state_machine import (
    IntakeState,
    IntakeStateMachine,
    TransitionTrigger,
)

__all__ = [
    "IntakeStateMachine",
    "IntakeState",
    "TransitionTrigger",
    "SlotManager",
    "SlotStatus",
]
