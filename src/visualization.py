import matplotlib.pyplot as plt
import networkx as nx

from automaton import EPSILON, is_epsilon


class AutomatonVisualizer:
    def __init__(self, states, transitions):
        self.states = list(states)
        self.transitions = list(transitions)

    @classmethod
    def for_automaton(cls, automaton):
        return cls(automaton.states, automaton.transitions)

    @classmethod
    def for_step(cls, step):
        return cls(step.result_automaton.states, step.result_automaton.transitions)

    def build_graph(self):
        G = nx.DiGraph()
        for state in self.states:
            G.add_node(state.id, label=state.label)

        edge_labels = {}

        for t in self.transitions:
            if t.from_state not in G or t.to_state not in G:
                continue
            edge_key = (t.from_state, t.to_state)
            symbol = EPSILON if is_epsilon(t.symbol) else t.symbol
            if edge_key in edge_labels:
                existing_label = edge_labels[edge_key]
                if symbol not in existing_label.split(","):
                    edge_labels[edge_key] = f"{existing_label},{symbol}"
            else:
                G.add_edge(t.from_state, t.to_state)
                edge_labels[edge_key] = symbol

        return G, edge_labels

    def layout(self, G):
        positions = {s.id: (s.position.x, -s.position.y) for s in self.states}
        if len(set(positions.values())) == len(positions):
            return positions

        if len(G.nodes) <= 6:
            return nx.spring_layout(G, k=2.5, iterations=100, seed=42)
        return nx.spring_layout(G, k=1.5, iterations=50, seed=42)

    def plot(self, ax, title="Automaton"):
        G, edge_labels = self.build_graph()

        if len(G.nodes) == 0:
            ax.text(
                0.5,
                0.5,
                "Empty Automaton",
                ha="center",
                va="center",
                transform=ax.transAxes,
            )
            ax.set_title(title)
            ax.axis("off")
            return

        pos = self.layout(G)

        node_colors = []
        node_labels = {}
        by_id = {s.id: s for s in self.states}

        for node in G.nodes():
            state = by_id[node]
            if state.is_initial:
                node_colors.append("lightgreen" if state.is_accepting else "lightblue")
            elif state.is_accepting:
                node_colors.append("lightcoral")
            else:
                node_colors.append("lightgray")
            node_labels[node] = state.label

        node_size = min(2000, max(800, 15000 // max(len(G.nodes), 1)))
        nx.draw_networkx_nodes(
            G, pos, node_color=node_colors, node_size=node_size, ax=ax, alpha=0.9
        )

        for node, (x, y) in pos.items():
            ax.text(
                x,
                y,
                node_labels[node],
                ha="center",
                va="center",
                fontsize=8,
                fontweight="bold",
                bbox=dict(
                    boxstyle="round,pad=0.3",
                    facecolor="white",
                    edgecolor="black",
                    alpha=0.9,
                ),
            )

        straight = [(u, v) for u, v in G.edges() if not G.has_edge(v, u) or u == v]
        curved = [(u, v) for u, v in G.edges() if G.has_edge(v, u) and u != v]

        for edgelist, style in ((straight, "arc3"), (curved, "arc3,rad=0.2")):
            if not edgelist:
                continue
            nx.draw_networkx_edges(
                G,
                pos,
                edgelist=edgelist,
                edge_color="gray",
                arrows=True,
                arrowsize=15,
                arrowstyle="->",
                width=1.2,
                ax=ax,
                alpha=0.7,
                node_size=node_size,
                connectionstyle=style,
            )

        self._draw_edge_labels(ax, pos, edge_labels, G)
        ax.set_title(title, fontsize=12, fontweight="bold")
        ax.axis("off")

    def _draw_edge_labels(self, ax, pos, edge_labels, G):
        spread = max(
            [abs(x) for x, _ in pos.values()] + [abs(y) for _, y in pos.values()] + [1.0]
        )

        for (from_node, to_node), label in edge_labels.items():
            x1, y1 = pos[from_node]
            x2, y2 = pos[to_node]

            if from_node == to_node:
                label_x, label_y = x1, y1 + 0.15 * spread
                facecolor, edgecolor = "yellow", "orange"
            else:
                mid_x, mid_y = (x1 + x2) / 2, (y1 + y2) / 2
                dx, dy = x2 - x1, y2 - y1
                length = (dx**2 + dy**2) ** 0.5

                if length > 0:
                    # bidirectional pairs sit on opposite sides of the straight line
                    offset = 0.1 * length if G.has_edge(to_node, from_node) else 0.08 * spread
                    label_x = mid_x - dy / length * offset
                    label_y = mid_y + dx / length * offset
                else:
                    label_x, label_y = mid_x, mid_y

                if "," in label:
                    facecolor, edgecolor = "lightcyan", "blue"
                else:
                    facecolor, edgecolor = "lightyellow", "orange"

            ax.text(
                label_x,
                label_y,
                label,
                ha="center",
                va="center",
                fontsize=7,
                fontweight="bold",
                bbox=dict(
                    boxstyle="round,pad=0.2",
                    facecolor=facecolor,
                    alpha=0.9,
                    edgecolor=edgecolor,
                ),
            )


def render_to_file(states, transitions, path, title="Automaton"):
    fig, ax = plt.subplots(figsize=(8, 5))
    try:
        AutomatonVisualizer(states, transitions).plot(ax, title)
        fig.tight_layout()
        fig.savefig(path)
    finally:
        plt.close(fig)
