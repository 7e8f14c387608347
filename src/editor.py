import logging
import re
from typing import Optional

from automaton import AUTOMATON_TYPES, EPSILON, Automaton, Position, State, Transition
from parsing import parse_json_automaton, write_automaton
from playback import ConversionPlayer


logger = logging.getLogger(__name__)


def _next_free(ids, prefix: str) -> int:
    pattern = re.compile(rf"^{prefix}(\d+)$")
    highest = -1
    for ident in ids:
        match = pattern.match(ident)
        if match:
            highest = max(highest, int(match.group(1)))
    return highest + 1


class AutomatonEditor:
    """
    Editing session owning a single automaton.

    State and transition ids come from the session's own counters and are
    never reused while the session lives (until clear()).
    """

    def __init__(self, automaton: Optional[Automaton] = None):
        self.automaton = automaton or Automaton()
        self._resume_counters()

    def _resume_counters(self):
        self.next_state_id = _next_free((s.id for s in self.automaton.states), "q")
        self.next_transition_id = _next_free((t.id for t in self.automaton.transitions), "t")

    def _require_state(self, state_id: str) -> State:
        state = self.automaton.get_state(state_id)
        if state is None:
            raise KeyError(f"Unknown state '{state_id}'")
        return state

    def add_state(self, position: Position) -> State:
        state_id = f"q{self.next_state_id}"
        state = State(
            id=state_id,
            label=state_id,
            position=Position(position.x, position.y),
            is_initial=not self.automaton.states,
        )
        self.automaton.states.append(state)
        self.next_state_id += 1
        logger.debug("Added state %s at (%s, %s)", state_id, position.x, position.y)
        return state

    def select_state(self, state_id: str) -> None:
        for state in self.automaton.states:
            state.is_selected = state.id == state_id
        for transition in self.automaton.transitions:
            transition.is_selected = False

    def select_transition(self, transition_id: str) -> None:
        for transition in self.automaton.transitions:
            transition.is_selected = transition.id == transition_id
        for state in self.automaton.states:
            state.is_selected = False

    def move_state(self, state_id: str, position: Position) -> None:
        self._require_state(state_id).position = Position(position.x, position.y)

    def add_transition(self, from_state: str, to_state: str, symbol: Optional[str] = None) -> Transition:
        self._require_state(from_state)
        self._require_state(to_state)
        symbol = (symbol or "").strip() or EPSILON

        transition = Transition(
            id=f"t{self.next_transition_id}",
            from_state=from_state,
            to_state=to_state,
            symbol=symbol,
        )
        self.automaton.transitions.append(transition)
        self.automaton.add_symbol(symbol)
        self.next_transition_id += 1
        logger.debug("Added transition %s: %s --%s--> %s", transition.id, from_state, symbol, to_state)
        return transition

    def delete_state(self, state_id: str) -> None:
        self._require_state(state_id)
        self.automaton.states = [s for s in self.automaton.states if s.id != state_id]
        self.automaton.transitions = [
            t for t in self.automaton.transitions
            if t.from_state != state_id and t.to_state != state_id
        ]
        logger.debug("Deleted state %s", state_id)

    def delete_transition(self, transition_id: str) -> None:
        if self.automaton.get_transition(transition_id) is None:
            raise KeyError(f"Unknown transition '{transition_id}'")
        self.automaton.transitions = [
            t for t in self.automaton.transitions if t.id != transition_id
        ]

    def toggle_accepting(self, state_id: str) -> bool:
        state = self._require_state(state_id)
        state.is_accepting = not state.is_accepting
        return state.is_accepting

    def toggle_initial(self, state_id: str) -> bool:
        state = self._require_state(state_id)
        state.is_initial = not state.is_initial
        return state.is_initial

    def set_type(self, a_type: str) -> None:
        if a_type not in AUTOMATON_TYPES:
            raise ValueError(f"Unknown automaton type '{a_type}'")
        self.automaton.type = a_type

    def clear(self) -> None:
        self.automaton = Automaton()
        self.next_state_id = 0
        self.next_transition_id = 0

    def import_json(self, path: str) -> Automaton:
        # parse fully before touching the current automaton
        loaded = parse_json_automaton(path)
        self.automaton = loaded
        self._resume_counters()
        return loaded

    def export_json(self, path: str) -> None:
        write_automaton(self.automaton, path)

    def snapshot(self) -> Automaton:
        return self.automaton.copy()

    def start_conversion(self) -> ConversionPlayer:
        return ConversionPlayer.from_automaton(self.snapshot())
