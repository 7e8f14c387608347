import json

import pytest

from conversion import convert
from parsing import (
    MalformedDocumentError,
    automaton_from_json_dict,
    automaton_to_json_dict,
    conversion_to_json_dict,
    parse_json_automaton,
    write_automaton,
)


DOCUMENT = {
    "states": [
        {"id": "q0", "label": "start", "position": {"x": 10, "y": 20},
         "isInitial": True, "isAccepting": False, "isSelected": False},
        {"id": "q1", "label": "q1", "position": {"x": 200, "y": 20},
         "isInitial": False, "isAccepting": True, "isSelected": True},
    ],
    "transitions": [
        {"id": "t0", "from": "q0", "to": "q1", "symbol": "a", "isSelected": False},
        {"id": "t1", "from": "q1", "to": "q1", "symbol": "ε", "isSelected": False},
    ],
    "alphabet": ["a", "ε"],
    "type": "NFA",
}


def test_load_document():
    automaton = automaton_from_json_dict(DOCUMENT)

    assert [s.id for s in automaton.states] == ["q0", "q1"]
    assert automaton.states[0].label == "start"
    assert automaton.states[0].position.x == 10
    assert automaton.states[0].is_initial
    assert automaton.states[1].is_selected
    assert automaton.transitions[1].symbol == "ε"
    assert automaton.alphabet == ["a"]


def test_file_round_trip(tmp_path):
    path = tmp_path / "nested" / "automaton.json"
    original = automaton_from_json_dict(DOCUMENT)

    write_automaton(original, str(path))
    loaded = parse_json_automaton(str(path))

    assert loaded == original
    data = json.loads(path.read_text(encoding="utf-8"))
    assert set(data) == {"states", "transitions", "alphabet", "type"}
    assert data["transitions"][1]["symbol"] == "ε"


def test_defaults_for_optional_fields():
    automaton = automaton_from_json_dict({
        "states": [{"id": "q0"}],
        "transitions": [{"from": "q0", "to": "q0", "symbol": "x"}],
    })

    state = automaton.states[0]
    assert state.label == "q0"
    assert (state.position.x, state.position.y) == (0, 0)
    assert not state.is_initial
    assert automaton.transitions[0].id == "t0"
    assert automaton.alphabet == ["x"]
    assert automaton.type == "NFA"


def test_alphabet_is_deduplicated():
    doc = dict(DOCUMENT, alphabet=["a", "a", "epsilon", "b"])
    assert automaton_from_json_dict(doc).alphabet == ["a", "b"]


@pytest.mark.parametrize("doc", [
    [],
    {"transitions": []},
    {"states": {}, "transitions": []},
    {"states": [{"label": "q0"}], "transitions": []},
    {"states": [{"id": "q0"}, {"id": "q0"}], "transitions": []},
    {"states": [{"id": "q0", "isInitial": "yes"}], "transitions": []},
    {"states": [{"id": "q0"}], "transitions": [{"from": "q0", "to": "q0"}]},
    {"states": [], "transitions": [], "type": "PDA"},
    {"states": [], "transitions": [], "alphabet": "ab"},
    {"states": [{"id": "q0"}], "transitions": [
        {"id": "t0", "from": "q0", "to": "q0", "symbol": "a"},
        {"id": "t0", "from": "q0", "to": "q0", "symbol": "b"},
    ]},
    {"states": [{"id": "q0\x1fq1"}], "transitions": []},
])
def test_malformed_documents(doc):
    with pytest.raises(MalformedDocumentError):
        automaton_from_json_dict(doc)


def test_invalid_json_file(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(MalformedDocumentError):
        parse_json_automaton(str(path))

    with pytest.raises(MalformedDocumentError):
        parse_json_automaton(str(tmp_path / "missing.json"))


def test_export_drops_epsilon_from_alphabet():
    automaton = automaton_from_json_dict(DOCUMENT)
    automaton.alphabet.append("ε")
    assert automaton_to_json_dict(automaton)["alphabet"] == ["a"]


def test_conversion_trace_export():
    result = convert(automaton_from_json_dict(DOCUMENT))
    data = conversion_to_json_dict(result)

    assert [s["step"] for s in data["steps"]] == [1, 2]
    assert data["steps"][0]["newState"] == "q0"
    assert data["steps"][1]["transitions"] == [{"from": "q0", "symbol": "a", "to": ["q1"]}]
    assert len(data["steps"][1]["resultAutomaton"]["states"]) == 2
    assert data["dfa"]["type"] == "DFA"
    assert data["stateComposition"] == {"q0": ["q0"], "q1": ["q1"]}


def test_generated_transition_ids_skip_explicit_ones():
    automaton = automaton_from_json_dict({
        "states": [{"id": "q0"}],
        "transitions": [
            {"id": "t1", "from": "q0", "to": "q0", "symbol": "a"},
            {"from": "q0", "to": "q0", "symbol": "b"},
            {"from": "q0", "to": "q0", "symbol": "c"},
            {"id": "t0", "from": "q0", "to": "q0", "symbol": "d"},
        ],
    })

    ids = [t.id for t in automaton.transitions]
    assert ids == ["t1", "t2", "t3", "t0"]
    assert len(set(ids)) == len(ids)
