import matplotlib.pyplot as plt

from conversion import convert
from visualization import AutomatonVisualizer, render_to_file


def test_graph_merges_parallel_labels(make_nfa):
    nfa = make_nfa(
        ["q0", "q1"],
        [("q0", "a", "q1"), ("q0", "b", "q1"), ("q0", "a", "q1"), ("q1", "a", "q0")],
    )
    G, labels = AutomatonVisualizer.for_automaton(nfa).build_graph()

    assert set(G.nodes) == {"q0", "q1"}
    assert labels[("q0", "q1")] == "a,b"
    assert labels[("q1", "q0")] == "a"


def test_graph_skips_dangling_edges(make_nfa):
    nfa = make_nfa(["q0"], [("q0", "a", "ghost")])
    G, labels = AutomatonVisualizer.for_automaton(nfa).build_graph()
    assert list(G.edges) == []
    assert labels == {}


def test_plot_step_snapshot(ends_with_ab):
    step = convert(ends_with_ab).steps[-1]
    fig, ax = plt.subplots()
    try:
        AutomatonVisualizer.for_step(step).plot(ax, "DFA")
        assert ax.get_title() == "DFA"
        labels = {t.get_text() for t in ax.texts}
        assert "{q0, q1}" in labels
    finally:
        plt.close(fig)


def test_plot_empty(tmp_path):
    fig, ax = plt.subplots()
    try:
        AutomatonVisualizer([], []).plot(ax, "Nothing")
        assert ax.texts[0].get_text() == "Empty Automaton"
    finally:
        plt.close(fig)

    path = tmp_path / "empty.png"
    render_to_file([], [], str(path))
    assert path.exists()


def test_epsilon_spellings_share_one_label(make_nfa):
    nfa = make_nfa(
        ["q0", "q1"],
        [("q0", "epsilon", "q1"), ("q0", "ε", "q1"), ("q1", "epsilon", "q1")],
    )
    _, labels = AutomatonVisualizer.for_automaton(nfa).build_graph()

    assert labels[("q0", "q1")] == "ε"
    assert labels[("q1", "q1")] == "ε"
