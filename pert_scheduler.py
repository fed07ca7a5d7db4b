"""
PERT/CPM Network Scheduler
==========================
Streamlit application for activity-on-arrow project networks.

Tasks are entered as CSV rows ``from,to,duration,name``. The app computes
the fastest begin and latest finish of every event, total and free float of
every task, and shows the critical path as a Graphviz digraph, a network
diagram and a Gantt chart.

Run with:
    streamlit run pert_scheduler.py
"""

import streamlit as st
import matplotlib.pyplot as plt

from pert.dot import PertDot
from pert.engine import STRATEGIES, PertScheduler
from pert.errors import PertError
from pert.loader import DataLoader
from pert.ui_styles import THEMES, DEFAULT_THEME, get_active_theme, get_theme_css
from pert.visualizations import create_network_diagram, create_gantt_chart, create_plotly_gantt

SAMPLE_PROJECTS = {
    "Small network": (
        "1, 2, 1, task1\n"
        "2, 3, 3, task2\n"
        "1, 3, 5, task3\n"
        "1, 4, 10, task4\n"
        "3, 4, 2, task5\n"
    ),
    "House build (with dummy)": (
        "1, 2, 3, Foundation\n"
        "2, 3, 5, Walls\n"
        "2, 4, 2, Plumbing rough-in\n"
        "3, 4, 0, dummy\n"
        "3, 5, 4, Roof\n"
        "4, 5, 3, Electrical\n"
        "5, 6, 2, Finishing\n"
    ),
}


def load_upload(state, uploaded) -> bool:
    """Copy an uploaded file into the editor once, when a new file arrives."""
    if uploaded is None or state.get('upload_id') == uploaded.file_id:
        return False
    state['upload_id'] = uploaded.file_id
    state['csv_text'] = uploaded.getvalue().decode("utf-8-sig", errors="replace")
    state['calculated'] = False
    return True


def main():
    """Main Streamlit application."""

    st.set_page_config(
        page_title="PERT Network Scheduler",
        page_icon="📊",
        layout="wide",
        initial_sidebar_state="expanded"
    )

    if 'csv_text' not in st.session_state:
        st.session_state.csv_text = SAMPLE_PROJECTS["Small network"]
    if 'calculated' not in st.session_state:
        st.session_state.calculated = False

    with st.sidebar:
        st.header("Settings")
        theme_name = st.selectbox("Theme", options=list(THEMES.keys()),
                                  index=list(THEMES.keys()).index(DEFAULT_THEME))
        strategy = st.selectbox("Propagation strategy", options=list(STRATEGIES),
                                help="'paths' enumerates every simple path; use for small networks")
        project_start = st.number_input("Project start", min_value=0, value=0, step=1)

        st.divider()
        st.header("Sample Projects")
        for name, text in SAMPLE_PROJECTS.items():
            if st.button(f"Load {name}", use_container_width=True):
                st.session_state.csv_text = text
                st.session_state.calculated = False
                st.rerun()

        st.divider()
        st.header("Input Format")
        st.markdown("""
        One task per line, no header:

        `from, to, duration, name`

        - `from`/`to` are event numbers
        - `duration` 0 marks a dummy task
        - exactly one start and one end event
        """)

    theme = get_active_theme(theme_name)
    st.markdown(get_theme_css(theme), unsafe_allow_html=True)
    st.title("📊 PERT/CPM Network Scheduler")

    uploaded = st.file_uploader("Upload CSV", type=["csv", "txt"])
    load_upload(st.session_state, uploaded)

    csv_text = st.text_area("Tasks", value=st.session_state.csv_text, height=220)
    st.session_state.csv_text = csv_text

    if st.button("🔢 Calculate Critical Path & Floats", type="primary"):
        st.session_state.calculated = True

    if not st.session_state.calculated:
        st.info("Enter tasks and press Calculate.")
        return

    scheduler = PertScheduler(strategy=strategy, project_start=int(project_start))
    try:
        loader = DataLoader.from_text(csv_text)
    except PertError as exc:
        st.error(str(exc))
        return

    success, message = scheduler.calculate(loader.rows)
    if not success:
        st.error(message)
        return
    network = scheduler.network

    col1, col2, col3 = st.columns(3)
    col1.metric("Project Duration", network.project_duration)
    col2.metric("Critical Tasks", len(network.critical_tasks()))
    col3.metric("Events", network.graph.number_of_nodes())

    st.subheader("Critical Path")
    for path in network.critical_paths():
        st.markdown(f"**{' → '.join(map(str, path))}**")

    def highlight_critical(row):
        if row['Critical'] == 'Yes':
            return [f"background-color: {theme['critical_soft']}"] * len(row)
        return [''] * len(row)

    st.subheader("Tasks")
    results_df = network.get_results_dataframe()
    st.dataframe(results_df.style.apply(highlight_critical, axis=1),
                 use_container_width=True, hide_index=True)
    st.subheader("Events")
    st.dataframe(network.get_events_dataframe(), use_container_width=True, hide_index=True)

    dot_text = PertDot(network).render()
    tab1, tab2, tab3, tab4 = st.tabs(
        ["🔗 Graphviz", "📊 Network Diagram", "📅 Gantt Chart", "📝 Calculation Details"]
    )

    with tab1:
        st.graphviz_chart(dot_text)
        st.download_button("Download .dot", dot_text, file_name="pert.dot", mime="text/vnd.graphviz")
        st.code(dot_text, language="dot")

    with tab2:
        fig = create_network_diagram(network, theme)
        st.pyplot(fig)
        plt.close(fig)
        st.caption("Bold edges are critical tasks, dashed edges are dummy tasks. "
                   "Events show fastest begin..latest finish.")

    with tab3:
        st.plotly_chart(create_plotly_gantt(network, theme), use_container_width=True)
        fig = create_gantt_chart(network, theme)
        st.pyplot(fig)
        plt.close(fig)

    with tab4:
        log_text = "\n".join(scheduler.calculation_log)
        st.text_area("Calculation Steps", value=log_text, height=500, disabled=True)


if __name__ == "__main__":
    main()
