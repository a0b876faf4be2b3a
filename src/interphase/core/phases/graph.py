"""
Phase transition graph.

A fixed table of legal (from, to) pairs. An empty ``from`` means first
touch: the bead has no recorded phase yet.
"""

from collections.abc import Iterable

from .models import Phase

B = Phase.BRAINSTORM
BR = Phase.BRAINSTORM_REVIEWED
S = Phase.STRATEGIZED
P = Phase.PLANNED
PR = Phase.PLAN_REVIEWED
E = Phase.EXECUTING
SH = Phase.SHIPPING
D = Phase.DONE

DEFAULT_TRANSITIONS: tuple[tuple[str, Phase], ...] = (
    # Forward steps
    ("", B),
    (B, BR),
    (BR, S),
    (S, P),
    (P, PR),
    (PR, E),
    (E, SH),
    (SH, D),
    # Skip paths (entry points and common shortcuts)
    ("", BR),
    ("", S),
    ("", P),
    ("", PR),
    ("", E),
    (B, S),
    (BR, P),
    (S, PR),
    (P, E),
    (PR, SH),
    (E, D),
    # Re-entry for follow-up iterations
    (SH, B),
    (SH, P),
    (D, B),
    (D, P),
)


def _value(phase: str | None) -> str:
    if isinstance(phase, Phase):
        return phase.value
    return phase or ""


class TransitionGraph:
    """
    Immutable set of legal phase transitions.

    Example:
        >>> graph = TransitionGraph()
        >>> graph.is_valid_transition("", "brainstorm")
        True
        >>> graph.is_valid_transition("brainstorm", "done")
        False
    """

    def __init__(self, edges: Iterable[tuple[str, str]] = DEFAULT_TRANSITIONS):
        self._edges: frozenset[tuple[str, str]] = frozenset(
            (_value(source), _value(target)) for source, target in edges
        )

    @property
    def edges(self) -> frozenset[tuple[str, str]]:
        return self._edges

    def is_valid_transition(self, from_phase: str | None, to_phase: str | None) -> bool:
        """Exact-match lookup; an empty target is never valid."""
        if not to_phase:
            return False
        return (_value(from_phase), _value(to_phase)) in self._edges

    def entry_points(self) -> set[str]:
        """Phases reachable on first touch."""
        return {target for source, target in self._edges if source == ""}

    def targets_from(self, from_phase: str | None) -> set[str]:
        source = from_phase or ""
        return {target for s, target in self._edges if s == source}
