from dataclasses import dataclass, field
from typing import Dict, List, Optional

import pandas as pd

from automaton import Automaton
from conversion import ConversionStep, convert, ensure_convertible


NO_TRANSITION = "∅"


@dataclass
class TableRow:
    state_id: str
    label: str
    is_initial: bool = False
    is_accepting: bool = False
    cells: Dict[str, str] = field(default_factory=dict)

    @property
    def marked_label(self) -> str:
        marks = ("→" if self.is_initial else "") + ("*" if self.is_accepting else "")
        return f"{marks} {self.label}" if marks else self.label


def transition_table(step: ConversionStep, symbols: List[str]) -> List[TableRow]:
    snapshot = step.result_automaton
    labels = {s.id: s.label for s in snapshot.states}
    rows = []

    for state in snapshot.states:
        row = TableRow(
            state_id=state.id,
            label=state.label,
            is_initial=state.is_initial,
            is_accepting=state.is_accepting,
        )
        for symbol in symbols:
            target = next(
                (t.to_state for t in snapshot.transitions
                 if t.from_state == state.id and t.symbol == symbol),
                None,
            )
            row.cells[symbol] = labels.get(target, NO_TRANSITION)
        rows.append(row)

    return rows


def table_frame(step: ConversionStep, symbols: List[str]) -> pd.DataFrame:
    rows = transition_table(step, symbols)
    data = [[row.marked_label] + [row.cells[sym] for sym in symbols] for row in rows]
    return pd.DataFrame(data, columns=["State"] + list(symbols))


def describe_step(step: ConversionStep, width: int = 60) -> str:
    text = step.description
    if len(text) > width:
        text = text[:width] + "..."
    return f"Step {step.step}: {text}"


class ConversionPlayer:
    """Forward/backward navigation over a finished conversion trace."""

    def __init__(self, steps: List[ConversionStep], symbols: Optional[List[str]] = None):
        self.steps = list(steps)
        self.symbols = list(symbols or [])
        self.index = 0

    @classmethod
    def from_automaton(cls, nfa: Automaton) -> "ConversionPlayer":
        ensure_convertible(nfa)
        result = convert(nfa)
        return cls(result.steps, result.alphabet)

    def __len__(self):
        return len(self.steps)

    @property
    def current(self) -> Optional[ConversionStep]:
        if not self.steps:
            return None
        return self.steps[self.index]

    @property
    def at_start(self) -> bool:
        return self.index == 0

    @property
    def at_end(self) -> bool:
        return self.index >= len(self.steps) - 1

    def next(self) -> Optional[ConversionStep]:
        if not self.at_end:
            self.index += 1
        return self.current

    def previous(self) -> Optional[ConversionStep]:
        if not self.at_start:
            self.index -= 1
        return self.current

    def jump(self, index: int) -> ConversionStep:
        if not 0 <= index < len(self.steps):
            raise IndexError(f"Step index {index} out of range (0..{len(self.steps) - 1})")
        self.index = index
        return self.steps[index]

    def table(self) -> List[TableRow]:
        if self.current is None:
            return []
        return transition_table(self.current, self.symbols)
