import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from automaton import EPSILON, EPSILON_SYMBOLS, Automaton, Position, State, Transition


logger = logging.getLogger(__name__)

# ASCII unit separator, never part of an editor-generated state id
KEY_SEPARATOR = "\x1f"


class EmptyAutomatonError(ValueError):
    pass


@dataclass
class RawMove:
    from_state: str
    symbol: str
    to_states: List[str]


@dataclass
class StepSnapshot:
    states: List[State] = field(default_factory=list)
    transitions: List[Transition] = field(default_factory=list)


@dataclass
class ConversionStep:
    step: int
    description: str
    current_states: List[str]
    new_state: Optional[str]
    transitions: List[RawMove]
    result_automaton: StepSnapshot


@dataclass
class ConversionResult:
    dfa_states: List[State] = field(default_factory=list)
    dfa_transitions: List[Transition] = field(default_factory=list)
    steps: List[ConversionStep] = field(default_factory=list)
    alphabet: List[str] = field(default_factory=list)
    # dfa state id -> sorted ids of the original states it stands for
    state_composition: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.steps

    def to_automaton(self) -> Automaton:
        return Automaton(
            states=[s.copy() for s in self.dfa_states],
            transitions=[t.copy() for t in self.dfa_transitions],
            alphabet=list(self.alphabet),
            type="DFA",
        )


def index_transitions(transitions: Iterable[Transition]) -> Dict[str, Dict[str, List[str]]]:
    index: Dict[str, Dict[str, List[str]]] = {}

    for t in transitions:
        targets = index.setdefault(t.from_state, {}).setdefault(t.symbol, [])
        if t.to_state not in targets:
            targets.append(t.to_state)

    return index


def epsilon_closure(
    state_ids: Iterable[str], transitions: Dict[str, Dict[str, List[str]]]
) -> List[str]:
    stack = list(state_ids)
    closure = set(stack)

    while stack:
        s = stack.pop()
        for eps_sym in EPSILON_SYMBOLS:
            for nxt in transitions.get(s, {}).get(eps_sym, []):
                if nxt not in closure:
                    closure.add(nxt)
                    stack.append(nxt)

    return sorted(closure)


def move(
    state_ids: Iterable[str], symbol: str, transitions: Dict[str, Dict[str, List[str]]]
) -> List[str]:
    result = []

    for s in state_ids:
        for d in transitions.get(s, {}).get(symbol, []):
            if d not in result:
                result.append(d)

    return result


def canonical_key(state_ids: Iterable[str]) -> str:
    return KEY_SEPARATOR.join(sorted(set(state_ids)))


def format_set(state_ids: Iterable[str]) -> str:
    return "{" + ", ".join(state_ids) + "}"


def ensure_convertible(nfa: Automaton) -> None:
    if not nfa.states:
        raise EmptyAutomatonError("Add some states first!")


class SubsetConstruction:
    """
    Subset construction with epsilon-closure over a read-only automaton.

    Every derivation is recorded as a ConversionStep whose snapshot holds
    copies of the partial DFA, so earlier steps never change once recorded.
    Counters live on the instance and are reset by each call to run().
    """

    def __init__(self, nfa: Automaton):
        self.nfa = nfa
        self.transitions = index_transitions(nfa.transitions)
        self.accepting = set(nfa.accepting_ids())
        self.symbols = nfa.symbols()
        self._reset()

    def _reset(self):
        self.dfa_states: List[State] = []
        self.dfa_transitions: List[Transition] = []
        self.steps: List[ConversionStep] = []
        self.state_composition: Dict[str, List[str]] = {}
        self._state_counter = 0

    def _new_state(self, closure: List[str], initial: bool = False) -> State:
        state = State(
            id=f"q{self._state_counter}",
            label=format_set(closure),
            position=Position(100 + len(self.dfa_states) * 150, 100),
            is_initial=initial,
            is_accepting=any(s in self.accepting for s in closure),
        )
        self._state_counter += 1
        self.dfa_states.append(state)
        self.state_composition[state.id] = list(closure)
        logger.debug("New DFA state %s = %s", state.id, state.label)
        return state

    def _snapshot(self) -> StepSnapshot:
        return StepSnapshot(
            states=[s.copy() for s in self.dfa_states],
            transitions=[t.copy() for t in self.dfa_transitions],
        )

    def _record(self, description, current_states, new_state, raw_moves):
        step = ConversionStep(
            step=len(self.steps) + 1,
            description=description,
            current_states=list(current_states),
            new_state=new_state,
            transitions=raw_moves,
            result_automaton=self._snapshot(),
        )
        self.steps.append(step)
        return step

    def run(self) -> ConversionResult:
        self._reset()

        if not self.nfa.states:
            logger.warning("Nothing to convert: the automaton has no states")
            return ConversionResult(alphabet=list(self.symbols))

        initial_ids = self.nfa.initial_ids()
        start_closure = epsilon_closure(initial_ids, self.transitions)
        start = self._new_state(start_closure, initial=True)

        self._record(
            f"Initial state: {EPSILON}-closure({format_set(initial_ids)}) = {format_set(start_closure)}",
            start_closure,
            start.id,
            [],
        )

        queue = deque([(start_closure, start.id)])
        processed = {canonical_key(start_closure): start.id}

        while queue:
            current, current_id = queue.popleft()

            for symbol in self.symbols:
                reachable = move(current, symbol, self.transitions)
                if not reachable:
                    continue

                closure = epsilon_closure(reachable, self.transitions)
                key = canonical_key(closure)
                target_id = processed.get(key)
                new_state = None

                if target_id is None:
                    target_id = self._new_state(closure).id
                    new_state = target_id
                    processed[key] = target_id
                    queue.append((closure, target_id))

                self.dfa_transitions.append(
                    Transition(
                        id=f"t{len(self.dfa_transitions)}",
                        from_state=current_id,
                        to_state=target_id,
                        symbol=symbol,
                    )
                )

                self._record(
                    f"From {format_set(current)} on '{symbol}' → "
                    f"{EPSILON}-closure({format_set(reachable)}) = {format_set(closure)}",
                    closure,
                    new_state,
                    [RawMove(from_state=current_id, symbol=symbol, to_states=list(reachable))],
                )

        logger.info(
            "Subset construction finished: %d states, %d transitions, %d steps",
            len(self.dfa_states),
            len(self.dfa_transitions),
            len(self.steps),
        )

        return ConversionResult(
            dfa_states=[s.copy() for s in self.dfa_states],
            dfa_transitions=[t.copy() for t in self.dfa_transitions],
            steps=list(self.steps),
            alphabet=list(self.symbols),
            state_composition={k: list(v) for k, v in self.state_composition.items()},
        )


def convert(nfa: Automaton) -> ConversionResult:
    return SubsetConstruction(nfa).run()
