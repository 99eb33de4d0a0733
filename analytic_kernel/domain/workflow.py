"""
Lifecycle state machines (``analytic_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects describing which lifecycle actions are legal from which
status, for budgets and auto-assignment rules.  Services look up the
transition for (current status, action) and raise
InvalidStateTransitionError when there is none.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
* Terminal states have no outgoing transitions.
"""

from __future__ import annotations

from dataclasses import dataclass

from analytic_kernel.exceptions import InvalidStateTransitionError


@dataclass(frozen=True)
class Transition:
    """A valid state transition in a workflow."""

    from_state: str
    to_state: str
    action: str


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for an entity lifecycle.

    Contract: frozen; ``transitions`` reference only states in ``states``.
    Guarantees: ``initial_state`` is a member of ``states`` and terminal
    states have no outgoing transitions.
    """

    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.initial_state not in self.states:
            raise ValueError(
                f"{self.name}: initial state {self.initial_state!r} not in states"
            )
        for t in self.transitions:
            if t.from_state not in self.states or t.to_state not in self.states:
                raise ValueError(f"{self.name}: transition {t} uses unknown state")
            if t.from_state in self.terminal_states:
                raise ValueError(
                    f"{self.name}: terminal state {t.from_state!r} has a transition"
                )

    def find(self, from_state: str, action: str) -> Transition | None:
        """Return the transition for (from_state, action), or None."""
        for t in self.transitions:
            if t.from_state == from_state and t.action == action:
                return t
        return None

    def actions_from(self, state: str) -> tuple[str, ...]:
        return tuple(t.action for t in self.transitions if t.from_state == state)

    def apply(
        self,
        entity_type: str,
        entity_id: object,
        from_state: str,
        action: str,
    ) -> str:
        """Return the target state of ``action`` or raise.

        Raises:
            InvalidStateTransitionError: No transition for (from_state, action).
        """
        transition = self.find(from_state, action)
        if transition is None:
            raise InvalidStateTransitionError(
                entity_type, str(entity_id), from_state, action
            )
        return transition.to_state


BUDGET_WORKFLOW = Workflow(
    name="analytical_budget",
    description="Budget lifecycle: draft, confirm, revise, archive",
    initial_state="draft",
    states=("draft", "confirmed", "revised", "archived"),
    transitions=(
        Transition("draft", "confirmed", action="confirm"),
        Transition("confirmed", "revised", action="revise"),
        Transition("confirmed", "archived", action="archive"),
        Transition("revised", "archived", action="archive"),
    ),
    terminal_states=("archived",),
)

RULE_WORKFLOW = Workflow(
    name="auto_assignment_rule",
    description="Auto-assignment rule lifecycle",
    initial_state="draft",
    states=("draft", "confirmed", "archived"),
    transitions=(
        Transition("draft", "confirmed", action="confirm"),
        Transition("draft", "archived", action="archive"),
        Transition("confirmed", "archived", action="archive"),
        Transition("archived", "draft", action="restore"),
    ),
)
