from typing import Dict, Hashable, List, Tuple

from orderflow.errors import InvalidStateTransitionError


class TransitionTable:
    """
    Finite-state table: (current state, action) -> next state.

    Each workflow declares one table and routes every status change through
    next_state(), so guards live in one place instead of in each method.
    """

    def __init__(self, entity: str, transitions: Dict[Tuple[Hashable, str], Hashable]):
        self.entity = entity
        self._transitions = dict(transitions)

    def next_state(self, current, action: str):
        try:
            return self._transitions[(current, action)]
        except KeyError:
            raise InvalidStateTransitionError(self.entity, current, action) from None

    def can(self, current, action: str) -> bool:
        return (current, action) in self._transitions

    def allowed_actions(self, current) -> List[str]:
        return [a for (s, a) in self._transitions if s == current]
