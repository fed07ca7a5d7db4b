import io
import base64
from collections import defaultdict
from typing import Dict, Any, List, Tuple

import matplotlib.pyplot as plt
import matplotlib.patches as mpatches
import networkx as nx
import numpy as np
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .network import PertNetwork
from .ui_styles import THEMES, DEFAULT_THEME


def _event_layout(network: PertNetwork) -> Dict[int, Tuple[float, float]]:
    """Place events left to right by fastest begin, spread vertically per column."""
    columns: Dict[int, List[int]] = defaultdict(list)
    for event in network.events():
        columns[event.fastest_begin].append(event.label)

    pos: Dict[int, Tuple[float, float]] = {}
    for begin, labels in columns.items():
        offset = (len(labels) - 1) / 2
        for i, label in enumerate(labels):
            pos[label] = (begin * 3.0, (i - offset) * 2.0)
    return pos


def create_network_diagram(network: PertNetwork, theme: Dict[str, Any] = None) -> plt.Figure:
    """
    Create an activity-on-arrow network diagram using NetworkX and Matplotlib.

    Critical tasks are drawn bold, dummy tasks dashed.
    """
    theme = theme or THEMES[DEFAULT_THEME]
    graph = network.graph

    num_nodes = graph.number_of_nodes()
    fig, ax = plt.subplots(figsize=(max(12, int(num_nodes * 1.2)), max(6, int(num_nodes * 0.6))))

    pos = _event_layout(network)
    drawing = nx.DiGraph()
    drawing.add_nodes_from(graph.nodes)

    parallel: Dict[Tuple[int, int], int] = defaultdict(int)
    edge_labels: Dict[Tuple[int, int], str] = {}
    for u, v, task in network.tasks():
        rank = parallel[(u, v)]
        parallel[(u, v)] += 1
        drawing.add_edge(u, v)

        if network.is_dummy_path(task):
            color, style, width = theme["dummy"], "dashed", 1.5
        elif network.is_critical_path(task):
            color, style, width = theme["critical"], "solid", 3.5
        else:
            color, style, width = theme["noncritical"], "solid", 1.5

        nx.draw_networkx_edges(drawing, pos, edgelist=[(u, v)],
                               edge_color=color, style=style, width=width,
                               arrows=True, arrowsize=20, node_size=1800,
                               connectionstyle=f"arc3,rad={0.1 + 0.2 * rank}",
                               ax=ax)

        label = f"{task.name}({task.duration})\nT:{task.total_float} F:{task.free_float}"
        edge_labels[(u, v)] = f"{edge_labels[(u, v)]}\n{label}" if (u, v) in edge_labels else label

    nx.draw_networkx_edge_labels(drawing, pos, edge_labels, font_size=7, ax=ax)

    critical_events = [e.label for e in network.events() if e.slack == 0]
    other_events = [e.label for e in network.events() if e.slack != 0]
    nx.draw_networkx_nodes(drawing, pos, nodelist=other_events,
                           node_color=theme["node_noncrit"], node_size=1800, ax=ax)
    nx.draw_networkx_nodes(drawing, pos, nodelist=critical_events,
                           node_color=theme["node_crit"], node_size=1800,
                           edgecolors=theme["critical"], linewidths=2, ax=ax)

    labels = {e.label: f"{e.label}\n{e.fastest_begin}..{e.latest_finish}" for e in network.events()}
    nx.draw_networkx_labels(drawing, pos, labels, font_size=8, ax=ax)

    legend_elements = [
        plt.Line2D([0], [0], color=theme["critical"], linewidth=3.5, label='Critical Task'),
        plt.Line2D([0], [0], color=theme["noncritical"], linewidth=1.5, label='Task'),
        plt.Line2D([0], [0], color=theme["dummy"], linewidth=1.5, linestyle='dashed', label='Dummy Task'),
        mpatches.Patch(color=theme["node_crit"], label='Critical Event'),
    ]
    ax.legend(handles=legend_elements, loc='upper left', bbox_to_anchor=(1.02, 1), fontsize=8)
    ax.set_title(f'PERT Network (Project Duration: {network.project_duration})',
                 fontsize=14, fontweight='bold')
    ax.axis('off')
    plt.tight_layout()
    return fig


def create_gantt_chart(network: PertNetwork, theme: Dict[str, Any] = None) -> plt.Figure:
    """
    Create a Gantt chart of tasks at their earliest start using Matplotlib.
    """
    theme = theme or THEMES[DEFAULT_THEME]
    tasks = [(u, v, t) for u, v, t in network.tasks() if not network.is_dummy_path(t)]
    fig, ax = plt.subplots(figsize=(14, max(4, len(tasks) * 0.5)))

    for i, (u, v, task) in enumerate(reversed(tasks)):
        es = network.event(u).fastest_begin
        color = theme["critical"] if network.is_critical_path(task) else theme["noncritical"]
        ax.barh(i, task.duration, left=es, height=0.6, color=color, edgecolor=color, linewidth=2)
        ax.text(es + task.duration / 2, i, f"{task.name} ({task.duration})",
                ha='center', va='center', color='white', fontweight='bold', fontsize=9)

        if task.total_float > 0:
            ax.barh(i, task.total_float, left=es + task.duration, height=0.3,
                    color='lightgray', edgecolor='gray', linewidth=1, alpha=0.7)

    ax.set_yticks(range(len(tasks)))
    ax.set_yticklabels([f"{t.name} ({u}->{v})" for u, v, t in reversed(tasks)])

    duration = network.project_finish
    ax.set_xticks(np.arange(0, duration + 1, max(1, int(duration / 20))))
    ax.set_xlim(-0.5, duration + 1)
    ax.set_xlabel('Time', fontsize=12)
    ax.set_title('Project Gantt Chart', fontsize=14, fontweight='bold')
    ax.grid(axis='x', linestyle='--', alpha=0.7)
    ax.set_axisbelow(True)
    ax.axvline(x=duration, color=theme["critical"], linestyle='--', linewidth=2)

    legend_elements = [
        mpatches.Patch(color=theme["critical"], label='Critical Task'),
        mpatches.Patch(color=theme["noncritical"], label='Non-Critical Task'),
        mpatches.Patch(color='lightgray', label='Total Float'),
    ]
    ax.legend(handles=legend_elements, loc='upper right')
    plt.tight_layout()
    return fig


def create_plotly_gantt(network: PertNetwork, theme: Dict[str, Any] = None,
                        base_date: str = "2026-01-05") -> go.Figure:
    """
    Create an interactive Gantt chart using Plotly.
    """
    theme = theme or THEMES[DEFAULT_THEME]
    df = network.get_results_dataframe()
    df = df[df["Dummy"] == "No"]
    if df.empty:
        fig = go.Figure()
        fig.add_annotation(text="No tasks to display", x=0.5, y=0.5, showarrow=False)
        fig.update_layout(height=400)
        return fig

    base = pd.Timestamp(base_date)
    df = df.assign(
        Label=df["Task"] + " (" + df["From"].astype(str) + "->" + df["To"].astype(str) + ")",
        Start=[base + pd.Timedelta(days=int(es)) for es in df["ES"]],
        Finish=[base + pd.Timedelta(days=int(ef)) for ef in df["EF"]],
    )

    fig = px.timeline(
        df,
        x_start="Start",
        x_end="Finish",
        y="Label",
        color="Critical",
        color_discrete_map={"Yes": theme["critical"], "No": theme["noncritical"]},
        hover_data=["Duration", "ES", "EF", "LS", "LF", "TF", "FF"],
    )
    fig.update_yaxes(autorange="reversed")
    fig.update_layout(
        height=max(400, len(df) * 32),
        margin=dict(l=10, r=10, t=30, b=10),
        title="Interactive Gantt Timeline",
        xaxis_title="Calendar Timeline",
        yaxis_title="Tasks",
        legend_title="Critical",
        template="plotly_white",
        paper_bgcolor=theme["surface"],
        plot_bgcolor=theme["surface"],
        font=dict(color=theme["ink"]),
    )
    return fig


def fig_to_base64(fig: plt.Figure) -> str:
    buffer = io.BytesIO()
    fig.savefig(buffer, format="png", dpi=180, bbox_inches="tight")
    buffer.seek(0)
    encoded = base64.b64encode(buffer.read()).decode("utf-8")
    buffer.close()
    return encoded
