import json
import logging
import os
from typing import Dict, List

from automaton import AUTOMATON_TYPES, Automaton, Position, State, Transition, is_epsilon
from conversion import KEY_SEPARATOR, ConversionResult, StepSnapshot


logger = logging.getLogger(__name__)


class MalformedDocumentError(ValueError):
    pass


def _require(data: Dict, key: str, kind, where: str):
    if key not in data:
        raise MalformedDocumentError(f"{where}: missing field '{key}'")
    value = data[key]
    if not isinstance(value, kind):
        raise MalformedDocumentError(f"{where}: field '{key}' has wrong type")
    return value


def _flag(data: Dict, key: str, where: str) -> bool:
    value = data.get(key, False)
    if not isinstance(value, bool):
        raise MalformedDocumentError(f"{where}: field '{key}' must be a boolean")
    return value


def _parse_position(raw, where: str) -> Position:
    if raw is None:
        return Position()
    if not isinstance(raw, dict):
        raise MalformedDocumentError(f"{where}: 'position' must be an object")
    try:
        return Position(float(raw.get("x", 0)), float(raw.get("y", 0)))
    except (TypeError, ValueError) as e:
        raise MalformedDocumentError(f"{where}: invalid position ({e})") from e


def automaton_from_json_dict(data) -> Automaton:
    if not isinstance(data, dict):
        raise MalformedDocumentError("Document root must be an object")

    raw_states = _require(data, "states", list, "automaton")
    raw_trans = _require(data, "transitions", list, "automaton")
    raw_alphabet = data.get("alphabet", [])
    if not isinstance(raw_alphabet, list) or not all(isinstance(a, str) for a in raw_alphabet):
        raise MalformedDocumentError("automaton: 'alphabet' must be a list of strings")
    a_type = data.get("type", "NFA")
    if a_type not in AUTOMATON_TYPES:
        raise MalformedDocumentError(f"automaton: unknown type '{a_type}'")

    states: List[State] = []
    seen_ids = set()
    for i, raw in enumerate(raw_states):
        where = f"states[{i}]"
        if not isinstance(raw, dict):
            raise MalformedDocumentError(f"{where}: must be an object")
        state_id = _require(raw, "id", str, where)
        if state_id in seen_ids:
            raise MalformedDocumentError(f"{where}: duplicate state id '{state_id}'")
        if KEY_SEPARATOR in state_id:
            raise MalformedDocumentError(f"{where}: state id contains a control character")
        seen_ids.add(state_id)
        label = raw.get("label", state_id)
        if not isinstance(label, str):
            raise MalformedDocumentError(f"{where}: field 'label' has wrong type")
        states.append(State(
            id=state_id,
            label=label,
            position=_parse_position(raw.get("position"), where),
            is_initial=_flag(raw, "isInitial", where),
            is_accepting=_flag(raw, "isAccepting", where),
            is_selected=_flag(raw, "isSelected", where),
        ))

    used_ids = set()
    for i, raw in enumerate(raw_trans):
        if not isinstance(raw, dict):
            raise MalformedDocumentError(f"transitions[{i}]: must be an object")
        if isinstance(raw.get("id"), str):
            if raw["id"] in used_ids:
                raise MalformedDocumentError(f"transitions[{i}]: duplicate transition id '{raw['id']}'")
            used_ids.add(raw["id"])

    transitions: List[Transition] = []
    next_free = 0
    for i, raw in enumerate(raw_trans):
        where = f"transitions[{i}]"
        transition_id = raw.get("id")
        if not isinstance(transition_id, str):
            while f"t{next_free}" in used_ids:
                next_free += 1
            transition_id = f"t{next_free}"
            used_ids.add(transition_id)
        transitions.append(Transition(
            id=transition_id,
            from_state=_require(raw, "from", str, where),
            to_state=_require(raw, "to", str, where),
            symbol=_require(raw, "symbol", str, where),
            is_selected=_flag(raw, "isSelected", where),
        ))

    automaton = Automaton(states=states, transitions=transitions, alphabet=[], type=a_type)
    for sym in raw_alphabet:
        automaton.add_symbol(sym)
    for t in transitions:
        automaton.add_symbol(t.symbol)

    return automaton


def parse_json_automaton(path: str) -> Automaton:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise MalformedDocumentError(f"Invalid JSON in '{path}': {e}") from e
    except OSError as e:
        raise MalformedDocumentError(f"Error reading file '{path}': {e}") from e

    automaton = automaton_from_json_dict(data)
    logger.info(
        "Loaded %s from %s: %d states, %d transitions",
        automaton.type, path, len(automaton.states), len(automaton.transitions),
    )
    return automaton


def _state_to_json(s: State) -> dict:
    return {
        "id": s.id,
        "label": s.label,
        "position": {"x": s.position.x, "y": s.position.y},
        "isInitial": s.is_initial,
        "isAccepting": s.is_accepting,
        "isSelected": s.is_selected,
    }


def _transition_to_json(t: Transition) -> dict:
    return {
        "id": t.id,
        "from": t.from_state,
        "to": t.to_state,
        "symbol": t.symbol,
        "isSelected": t.is_selected,
    }


def automaton_to_json_dict(a: Automaton) -> dict:
    return {
        "states": [_state_to_json(s) for s in a.states],
        "transitions": [_transition_to_json(t) for t in a.transitions],
        "alphabet": [sym for sym in a.alphabet if not is_epsilon(sym)],
        "type": a.type,
    }


def _snapshot_to_json(snapshot: StepSnapshot) -> dict:
    return {
        "states": [_state_to_json(s) for s in snapshot.states],
        "transitions": [_transition_to_json(t) for t in snapshot.transitions],
    }


def conversion_to_json_dict(result: ConversionResult) -> dict:
    return {
        "alphabet": list(result.alphabet),
        "stateComposition": {k: list(v) for k, v in result.state_composition.items()},
        "steps": [
            {
                "step": step.step,
                "description": step.description,
                "currentStates": list(step.current_states),
                "newState": step.new_state,
                "transitions": [
                    {"from": m.from_state, "symbol": m.symbol, "to": list(m.to_states)}
                    for m in step.transitions
                ],
                "resultAutomaton": _snapshot_to_json(step.result_automaton),
            }
            for step in result.steps
        ],
        "dfa": automaton_to_json_dict(result.to_automaton()),
    }


def write_json(data: dict, path: str) -> None:
    dirname = os.path.dirname(path)
    if dirname:
        os.makedirs(dirname, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)


def write_automaton(a: Automaton, path: str) -> None:
    write_json(automaton_to_json_dict(a), path)
    logger.info("Saved %s to %s", a.type, path)
