from dataclasses import dataclass, field
from typing import Dict, List, Optional


EPSILON = "ε"
EPSILON_SYMBOLS = (EPSILON, "epsilon")
AUTOMATON_TYPES = ("NFA", "DFA")


def is_epsilon(symbol: str) -> bool:
    return symbol in EPSILON_SYMBOLS


@dataclass
class Position:
    x: float = 0.0
    y: float = 0.0


@dataclass
class State:
    id: str
    label: str
    position: Position = field(default_factory=Position)
    is_initial: bool = False
    is_accepting: bool = False
    is_selected: bool = False

    def copy(self) -> "State":
        return State(
            id=self.id,
            label=self.label,
            position=Position(self.position.x, self.position.y),
            is_initial=self.is_initial,
            is_accepting=self.is_accepting,
            is_selected=self.is_selected,
        )


@dataclass
class Transition:
    id: str
    from_state: str
    to_state: str
    symbol: str
    is_selected: bool = False

    def copy(self) -> "Transition":
        return Transition(
            id=self.id,
            from_state=self.from_state,
            to_state=self.to_state,
            symbol=self.symbol,
            is_selected=self.is_selected,
        )

    @property
    def is_epsilon(self) -> bool:
        return is_epsilon(self.symbol)


@dataclass
class Automaton:
    states: List[State] = field(default_factory=list)
    transitions: List[Transition] = field(default_factory=list)
    alphabet: List[str] = field(default_factory=list)
    type: str = "NFA"

    def copy(self) -> "Automaton":
        return Automaton(
            states=[s.copy() for s in self.states],
            transitions=[t.copy() for t in self.transitions],
            alphabet=list(self.alphabet),
            type=self.type,
        )

    def get_state(self, state_id: str) -> Optional[State]:
        for state in self.states:
            if state.id == state_id:
                return state
        return None

    def get_transition(self, transition_id: str) -> Optional[Transition]:
        for transition in self.transitions:
            if transition.id == transition_id:
                return transition
        return None

    def initial_ids(self) -> List[str]:
        return [s.id for s in self.states if s.is_initial]

    def accepting_ids(self) -> List[str]:
        return [s.id for s in self.states if s.is_accepting]

    def symbols(self) -> List[str]:
        """Distinct non-epsilon alphabet symbols, in first-seen order."""
        seen = []
        for sym in self.alphabet:
            if not is_epsilon(sym) and sym not in seen:
                seen.append(sym)
        return seen

    def add_symbol(self, symbol: str) -> bool:
        if is_epsilon(symbol) or symbol in self.alphabet:
            return False
        self.alphabet.append(symbol)
        return True

    def get_stats(self) -> Dict:
        return {
            "type": self.type,
            "states": len(self.states),
            "alphabet_size": len(self.symbols()),
            "initial_states": len(self.initial_ids()),
            "accept_states": len(self.accepting_ids()),
            "total_transitions": len(self.transitions),
            "epsilon_transitions": sum(1 for t in self.transitions if t.is_epsilon),
        }

    def validate(self) -> List[str]:
        issues = []
        initial = self.initial_ids()

        if not initial:
            issues.append("No initial state defined")
        if self.type == "DFA" and len(initial) > 1:
            issues.append("DFA cannot have multiple initial states")
        if not self.accepting_ids():
            issues.append("No accepting states defined")

        return issues

    def is_valid(self) -> bool:
        # missing accepting states is only a warning
        return all(
            issue == "No accepting states defined" for issue in self.validate()
        )

    def accepts(self, word: str) -> bool:
        symbols = self.symbols()
        accepting = set(self.accepting_ids())

        def epsilon_closure(states):
            closure = set(states)
            stack = list(states)

            while stack:
                state = stack.pop()
                for t in self.transitions:
                    if t.from_state == state and t.is_epsilon and t.to_state not in closure:
                        closure.add(t.to_state)
                        stack.append(t.to_state)

            return closure

        current_states = epsilon_closure(self.initial_ids())

        for symbol in word:
            if symbol not in symbols:
                return False

            next_states = {
                t.to_state
                for t in self.transitions
                if t.from_state in current_states and t.symbol == symbol
            }
            current_states = epsilon_closure(next_states)

            if not current_states:
                return False

        return any(state in accepting for state in current_states)
