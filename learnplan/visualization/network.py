import logging

import matplotlib.pyplot as plt
import networkx as nx
from matplotlib.patches import Patch

from ..domain.progress import TaskStatus
from ..utils.graph import build_dependency_graph, is_satisfied

logger = logging.getLogger("learnplan.visualization")

STATUS_COLORS = {
    "completed": "limegreen",
    "in_progress": "gold",
    "available": "skyblue",
    "locked": "lightcoral",
    "missing": "lightgray",
}

LAYOUTS = ("spring", "dot", "circular", "shell", "spectral")


def node_state(G, node, plan, document):
    """Display state of a graph node: completed, in_progress, available, locked or missing."""
    if G.nodes[node].get("missing"):
        return "missing"
    status = document.status_of(node)
    if status == TaskStatus.COMPLETED:
        return "completed"
    if status == TaskStatus.IN_PROGRESS:
        return "in_progress"
    if is_satisfied(node, plan.tasks, document.tasks):
        return "available"
    return "locked"


def _layout(G, layout):
    if layout == "dot":
        try:
            return nx.nx_agraph.graphviz_layout(G, prog="dot")
        except ImportError:
            logger.warning("Graphviz not available. Using spring layout instead.")
            return nx.spring_layout(G, seed=42)
    if layout == "circular":
        return nx.circular_layout(G)
    if layout == "shell":
        return nx.shell_layout(G)
    if layout == "spectral" and G.number_of_nodes() > 2:
        return nx.spectral_layout(G)
    return nx.spring_layout(G, seed=42)


def create_network_diagram(plan, document, filename=None, show=False, layout="spring"):
    """
    Draw the task dependency network coloured by progress.

    Dependencies without a definition are drawn as grey nodes so broken
    references stay visible.

    Args:
        plan: The LearningPlan
        document: The ProgressDocument
        filename: Optional filename to save the diagram
        show: Whether to display the diagram
        layout: Network layout type ('spring', 'dot', 'circular', 'shell', or 'spectral')

    Returns:
        The matplotlib figure
    """
    G = build_dependency_graph(plan.tasks, include_missing=True)

    fig = plt.figure(figsize=(12, 8))

    states = {node: node_state(G, node, plan, document) for node in G.nodes()}
    node_colors = [STATUS_COLORS[states[node]] for node in G.nodes()]
    node_sizes = [600 if states[node] == "in_progress" else 500 for node in G.nodes()]

    pos = _layout(G, layout)

    nx.draw_networkx_nodes(
        G,
        pos,
        node_color=node_colors,
        node_size=node_sizes,
        node_shape="o",
        edgecolors="black",
    )

    edge_colors = [
        "lightgray" if states[u] == "missing" else "gray" for u, _ in G.edges()
    ]
    nx.draw_networkx_edges(
        G,
        pos,
        edge_color=edge_colors,
        width=1.0,
        arrowsize=15,
        arrowstyle="-|>",
        connectionstyle="arc3,rad=0.1",
    )

    # Labels sit just below the node with a light background
    bbox_props = dict(boxstyle="round,pad=0.3", fc="white", ec="gray", alpha=0.8)
    for node in G.nodes():
        task = G.nodes[node].get("task")
        label = f"{node}: {task.name}" if task is not None else f"{node} (missing)"
        if states[node] == "completed":
            label += " [✓]"
        x, y = pos[node]
        plt.text(
            x,
            y - 0.02,
            label,
            horizontalalignment="center",
            bbox=bbox_props,
            fontsize=9,
        )

    legend_elements = [
        Patch(facecolor=STATUS_COLORS["completed"], edgecolor="black", label="Completed"),
        Patch(facecolor=STATUS_COLORS["in_progress"], edgecolor="black", label="In Progress"),
        Patch(facecolor=STATUS_COLORS["available"], edgecolor="black", label="Available"),
        Patch(facecolor=STATUS_COLORS["locked"], edgecolor="black", label="Locked"),
        Patch(facecolor=STATUS_COLORS["missing"], edgecolor="black", label="Missing Dependency"),
    ]
    plt.legend(handles=legend_elements, loc="best", fontsize=10)

    plt.title(f"{plan.name or 'Learning Plan'}: Task Dependencies", fontsize=14)
    plt.axis("off")
    plt.tight_layout()

    if filename:
        plt.savefig(filename, dpi=150, bbox_inches="tight")
        logger.info("Network diagram saved to %s", filename)

    if show:
        plt.show()

    return fig
