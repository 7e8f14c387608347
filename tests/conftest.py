import matplotlib
import pytest

from automaton import Automaton, Position, State, Transition, is_epsilon


matplotlib.use("Agg")


def build_automaton(states, transitions, alphabet=None, initial=("q0",), accepting=()):
    """
    states: list of ids, transitions: list of (from, symbol, to) tuples.
    The alphabet defaults to the non-epsilon symbols of the transitions.
    """
    automaton = Automaton(
        states=[
            State(
                id=s,
                label=s,
                position=Position(100 * i, 100),
                is_initial=s in initial,
                is_accepting=s in accepting,
            )
            for i, s in enumerate(states)
        ],
        transitions=[
            Transition(id=f"t{i}", from_state=f, to_state=t, symbol=sym)
            for i, (f, sym, t) in enumerate(transitions)
        ],
    )
    if alphabet is None:
        alphabet = [sym for _, sym, _ in transitions if not is_epsilon(sym)]
    for sym in alphabet:
        if sym not in automaton.alphabet:
            automaton.alphabet.append(sym)
    return automaton


@pytest.fixture
def make_nfa():
    return build_automaton


@pytest.fixture
def ends_with_ab(make_nfa):
    # (a|b)* a b, with an epsilon hop into the suffix recogniser
    return make_nfa(
        ["q0", "q1", "q2", "q3"],
        [
            ("q0", "a", "q0"),
            ("q0", "b", "q0"),
            ("q0", "ε", "q1"),
            ("q1", "a", "q2"),
            ("q2", "b", "q3"),
        ],
        accepting=("q3",),
    )
