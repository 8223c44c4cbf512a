"""Build step state machine using the ``transitions`` library.

A build starts in ``start``, moves to ``evaluating`` once an instance is
resolved and always ends in exactly one of ``success``, ``unstable`` or
``failure``.
"""

from __future__ import annotations

from typing import Any

from transitions import Machine

STATES: list[str] = [
    "start",
    "evaluating",
    "success",
    "unstable",
    "failure",
]

TERMINAL_STATES: frozenset[str] = frozenset({"success", "unstable", "failure"})

TRANSITIONS: list[dict[str, Any]] = [
    {"trigger": "instance_found", "source": "start", "dest": "evaluating"},
    {"trigger": "instance_missing", "source": "start", "dest": "failure"},
    {"trigger": "gate_passed", "source": "evaluating", "dest": "success"},
    {"trigger": "gate_unstable", "source": "evaluating", "dest": "unstable"},
    {"trigger": "gate_failed", "source": "evaluating", "dest": "failure"},
    # Unexpected errors can surface before or during evaluation
    {
        "trigger": "evaluation_error",
        "source": ["start", "evaluating"],
        "dest": "failure",
    },
]


def create_build_machine(model: Any, initial_state: str = "start") -> Machine:
    """Create and return a ``Machine`` bound to *model*.

    Args:
        model: The per-build object whose state the machine manages.
        initial_state: The initial state for the machine.

    Returns:
        Configured ``Machine`` instance.
    """
    return Machine(
        model=model,
        states=STATES,
        transitions=TRANSITIONS,
        initial=initial_state,
        auto_transitions=False,
    )
