"""
Finite state machine for the buyer intake dialogue.

Defines the six intake states and the explicit transitions between them.
Every buyer conversation follows the same deterministic path: one state per
request field, a search at PROXIMITY, and a terminal END state that can loop
back for another search.

Usage:
    sm = IntakeStateMachine()
    sm.transition(TransitionTrigger.PRODUCT_NAME_GIVEN)
    assert sm.current_state == IntakeState.CATEGORY
"""

import logging
from enum import Enum
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

logger = logging.getLogger(__name__)


class IntakeState(str, Enum):
    """All possible states in an intake conversation."""
    PRODUCT_NAME = "product_name"
    CATEGORY = "category"
    QUANTITY = "quantity"
    PINCODE = "pincode"
    PROXIMITY = "proximity"
    END = "end"


class TransitionTrigger(str, Enum):
    """Events that cause state transitions."""
    PRODUCT_NAME_GIVEN = "product_name_given"
    CATEGORY_GIVEN = "category_given"
    QUANTITY_GIVEN = "quantity_given"
    PINCODE_GIVEN = "pincode_given"
    SEARCH_COMPLETED = "search_completed"
    SEARCH_AGAIN = "search_again"


@dataclass
class Transition:
    """A single valid state transition."""
    from_state: IntakeState
    to_state: IntakeState
    trigger: TransitionTrigger


@dataclass
class StateEntry:
    """Recorded history entry for a state visit."""
    state: IntakeState
    entered_at: datetime
    trigger: Optional[TransitionTrigger] = None


class InvalidTransitionError(Exception):
    """Raised when a transition is not valid from the current state."""


class IntakeStateMachine:
    """
    Deterministic state machine controlling the intake dialogue.

    Skipped fields still fire their trigger: "skip" resolves the step,
    it does not stall it. Re-prompts for malformed input do not transition.
    """

    TRANSITIONS: list[Transition] = [
        Transition(IntakeState.PRODUCT_NAME, IntakeState.CATEGORY,
                   TransitionTrigger.PRODUCT_NAME_GIVEN),
        Transition(IntakeState.CATEGORY, IntakeState.QUANTITY,
                   TransitionTrigger.CATEGORY_GIVEN),
        Transition(IntakeState.QUANTITY, IntakeState.PINCODE,
                   TransitionTrigger.QUANTITY_GIVEN),
        Transition(IntakeState.PINCODE, IntakeState.PROXIMITY,
                   TransitionTrigger.PINCODE_GIVEN),
        Transition(IntakeState.PROXIMITY, IntakeState.END,
                   TransitionTrigger.SEARCH_COMPLETED),

        # --- Search again ---
        Transition(IntakeState.END, IntakeState.PRODUCT_NAME,
                   TransitionTrigger.SEARCH_AGAIN),
    ]

    def __init__(self) -> None:
        self._current_state = IntakeState.PRODUCT_NAME
        self._history: list[StateEntry] = [
            StateEntry(state=IntakeState.PRODUCT_NAME, entered_at=datetime.now(timezone.utc))
        ]
        self._searches: int = 0

    @property
    def current_state(self) -> IntakeState:
        return self._current_state

    @property
    def search_count(self) -> int:
        return self._searches

    def transition(self, trigger: TransitionTrigger) -> IntakeState:
        """
        Execute a state transition.

        Args:
            trigger: The event triggering the transition.

        Returns:
            The new intake state.

        Raises:
            InvalidTransitionError: If no valid transition exists.
        """
        for t in self.TRANSITIONS:
            if t.from_state == self._current_state and t.trigger == trigger:
                old_state = self._current_state
                self._current_state = t.to_state

                self._history.append(StateEntry(
                    state=self._current_state,
                    entered_at=datetime.now(timezone.utc),
                    trigger=trigger,
                ))

                if t.to_state == IntakeState.END:
                    self._searches += 1

                logger.debug(
                    "State transition: %s -> %s (trigger: %s)",
                    old_state.value, self._current_state.value, trigger.value,
                )
                return self._current_state

        valid = [t.value for t in self.get_valid_triggers()]
        raise InvalidTransitionError(
            f"No valid transition from '{self._current_state.value}' "
            f"with trigger '{trigger.value}'. Valid triggers: {valid}"
        )

    def get_valid_triggers(self) -> list[TransitionTrigger]:
        """Return all triggers valid from the current state."""
        return [t.trigger for t in self.TRANSITIONS if t.from_state == self._current_state]

    def get_state_trace(self) -> list[str]:
        """Return ordered list of state names visited."""
        return [entry.state.value for entry in self._history]
