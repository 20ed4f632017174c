"""
TechShop Workflow — State Machine Definitions
===============================================
A WorkflowDefinition is the immutable schema of a lifecycle: its
states, the transitions allowed out of each state and which states are
terminal. Engines consult it before changing a status or stage and
raise InvalidTransition when it says no.

Definitions declared by the engines (in their models):
    QUOTATION_WORKFLOW  draft → sent → accepted|rejected, sent|accepted → converted
    INVOICE_WORKFLOW    pending → paid|cancelled, paid → cancelled
    DELIVERY_WORKFLOW   in_inventory → … → collected_by_receiver (forward only), any → returned
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, Tuple

from core.errors import InvalidTransition


@dataclass(frozen=True)
class WorkflowDefinition:
    """
    Fields:
        name:            Entity name used in error messages.
        initial_state:   State of every new instance.
        terminal_states: States with no outgoing transitions.
        transitions:     {from_state: frozenset(allowed to_states)}
    """
    name: str
    initial_state: str
    terminal_states: FrozenSet[str]
    transitions: Dict[str, FrozenSet[str]]

    def __post_init__(self):
        if not self.name:
            raise ValueError("Workflow name must be non-empty.")
        if self.initial_state not in self.transitions:
            raise ValueError(
                f"initial_state '{self.initial_state}' not in transitions."
            )
        for state in self.terminal_states:
            if self.transitions.get(state):
                raise ValueError(f"Terminal state '{state}' has outgoing transitions.")

    @property
    def states(self) -> FrozenSet[str]:
        return frozenset(self.transitions)

    def is_valid_transition(self, from_state: str, to_state: str) -> bool:
        return to_state in self.transitions.get(from_state, frozenset())

    def is_terminal(self, state: str) -> bool:
        return state in self.terminal_states

    def allowed_next_states(self, from_state: str) -> FrozenSet[str]:
        return self.transitions.get(from_state, frozenset())

    def require_transition(self, from_state: str, to_state: str) -> None:
        """Raise InvalidTransition unless from_state → to_state is allowed."""
        if to_state not in self.transitions:
            raise InvalidTransition(
                self.name, from_state, to_state, f"Unknown state '{to_state}'.",
            )
        if self.is_terminal(from_state):
            raise InvalidTransition(
                self.name, from_state, to_state,
                f"'{from_state}' is terminal.",
            )
        if not self.is_valid_transition(from_state, to_state):
            allowed = sorted(self.allowed_next_states(from_state))
            raise InvalidTransition(
                self.name, from_state, to_state, f"Allowed: {allowed}.",
            )


def linear_transitions(
    sequence: Tuple[str, ...],
    *,
    side_exit: str = "",
    skip_ahead: bool = False,
) -> Dict[str, FrozenSet[str]]:
    """
    Build forward-only transitions over an ordered sequence.

    Each state may move to its immediate successor, or to any later
    state when skip_ahead is set. When side_exit is given, every
    non-final state may also move to it.
    """
    transitions: Dict[str, FrozenSet[str]] = {}
    for index, state in enumerate(sequence):
        allowed = set()
        if index + 1 < len(sequence):
            if skip_ahead:
                allowed.update(sequence[index + 1:])
            else:
                allowed.add(sequence[index + 1])
            if side_exit:
                allowed.add(side_exit)
        transitions[state] = frozenset(allowed)
    if side_exit:
        transitions[side_exit] = frozenset()
    return transitions
