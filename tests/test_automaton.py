from automaton import EPSILON_SYMBOLS, Automaton, is_epsilon


def test_epsilon_literals():
    assert EPSILON_SYMBOLS == ("ε", "epsilon")
    assert is_epsilon("ε")
    assert is_epsilon("epsilon")
    assert not is_epsilon("")
    assert not is_epsilon("eps")


def test_symbols_are_distinct_and_ordered():
    automaton = Automaton(alphabet=["b", "ε", "a", "b", "epsilon"])
    assert automaton.symbols() == ["b", "a"]


def test_add_symbol_rejects_epsilon_and_duplicates():
    automaton = Automaton()
    assert automaton.add_symbol("a")
    assert not automaton.add_symbol("a")
    assert not automaton.add_symbol("ε")
    assert automaton.alphabet == ["a"]


def test_copy_is_deep(make_nfa):
    nfa = make_nfa(["q0", "q1"], [("q0", "a", "q1")])
    clone = nfa.copy()

    clone.states[0].position.x = 999
    clone.states[1].is_accepting = True
    clone.transitions[0].symbol = "b"
    clone.alphabet.append("z")

    assert nfa.states[0].position.x == 0
    assert not nfa.states[1].is_accepting
    assert nfa.transitions[0].symbol == "a"
    assert nfa.alphabet == ["a"]


def test_lookup_helpers(make_nfa):
    nfa = make_nfa(["q0", "q1"], [("q0", "a", "q1")], accepting=("q1",))

    assert nfa.get_state("q1").label == "q1"
    assert nfa.get_state("missing") is None
    assert nfa.get_transition("t0").to_state == "q1"
    assert nfa.initial_ids() == ["q0"]
    assert nfa.accepting_ids() == ["q1"]


def test_stats(ends_with_ab):
    stats = ends_with_ab.get_stats()
    assert stats["states"] == 4
    assert stats["alphabet_size"] == 2
    assert stats["total_transitions"] == 5
    assert stats["epsilon_transitions"] == 1
    assert stats["type"] == "NFA"


def test_validate_reports_issues(make_nfa):
    assert make_nfa(["q0"], [], initial=(), accepting=()).validate() == [
        "No initial state defined",
        "No accepting states defined",
    ]

    dfa = make_nfa(["q0", "q1"], [], initial=("q0", "q1"), accepting=("q1",))
    dfa.type = "DFA"
    assert dfa.validate() == ["DFA cannot have multiple initial states"]
    assert not dfa.is_valid()

    warning_only = make_nfa(["q0"], [])
    assert warning_only.validate() == ["No accepting states defined"]
    assert warning_only.is_valid()


def test_accepts_with_epsilon(ends_with_ab):
    assert ends_with_ab.accepts("ab")
    assert ends_with_ab.accepts("bbab")
    assert not ends_with_ab.accepts("")
    assert not ends_with_ab.accepts("abb")
    assert not ends_with_ab.accepts("abc")
