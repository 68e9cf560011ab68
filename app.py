import logging
import os

import streamlit as st

from charts import (
    convergence_line_chart,
    metric_radar_chart,
    metrics_frame,
    performance_bar_chart,
    summary_cards,
)
from core_logic import CV_FOLD_OPTIONS, DATASET_SIZE_RANGE, N_ESTIMATORS_RANGE, SimulationConfig
from simulation_controller import SimulationController

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)

# --- PAGE CONFIGURATION ---
st.set_page_config(
    page_title="Ensemble Stacking Visualizer",
    page_icon="🧱",
    layout="wide",
    initial_sidebar_state="expanded"
)

# --- HEADER ---
st.title("🧱 Ensemble Stacking Visualizer")
st.markdown("Compare **Standard Ensemble (Voting)** vs. **Stacking** architectures.")


# --- STATE ---
def get_controller():
    if "controller" not in st.session_state:
        st.session_state["controller"] = SimulationController.from_env()
    return st.session_state["controller"]


# Widgets keep their own state across reruns, so they always start from the defaults.
DEFAULT_CONFIG = SimulationConfig()

controller = get_controller()
busy = controller.is_busy

# --- SIDEBAR ---
st.sidebar.header("⚙️ Model Config")
dataset_size = st.sidebar.slider(
    "Dataset Size (samples)",
    min_value=DATASET_SIZE_RANGE[0],
    max_value=DATASET_SIZE_RANGE[1],
    value=DEFAULT_CONFIG.dataset_size,
    step=100,
    key="dataset_size",
    disabled=busy
)
n_estimators = st.sidebar.slider(
    "Base Estimators",
    min_value=N_ESTIMATORS_RANGE[0],
    max_value=N_ESTIMATORS_RANGE[1],
    value=DEFAULT_CONFIG.n_estimators,
    step=1,
    key="n_estimators",
    disabled=busy,
    help="Number of weak learners (e.g., Decision Trees) in the first layer."
)
noise_level = st.sidebar.slider(
    "Dataset Noise",
    min_value=0.0,
    max_value=1.0,
    value=DEFAULT_CONFIG.noise_level,
    step=0.05,
    key="noise_level",
    disabled=busy,
    help="Higher noise makes the problem harder, often benefitting Stacking's robustness."
)
cv_folds = st.sidebar.radio(
    "Cross-Validation Folds",
    CV_FOLD_OPTIONS,
    index=CV_FOLD_OPTIONS.index(DEFAULT_CONFIG.cv_folds),
    format_func=lambda fold: f"{fold}-Fold",
    horizontal=True,
    key="cv_folds",
    disabled=busy
)
controller.update_config(
    dataset_size=dataset_size,
    n_estimators=n_estimators,
    noise_level=noise_level,
    cv_folds=cv_folds
)

run_clicked = st.sidebar.button("▶️ Run Comparisons", type="primary", disabled=busy, key="run_simulation")


# --- RENDERING ---
def render_results(result):
    cols = st.columns(4)
    for col, (label, value) in zip(cols, summary_cards(controller.config, result)):
        col.metric(label, value)

    c1, c2 = st.columns(2)
    with c1:
        st.plotly_chart(performance_bar_chart(result), use_container_width=True)
    with c2:
        st.plotly_chart(convergence_line_chart(result), use_container_width=True)

    c3, c4 = st.columns(2)
    with c3:
        st.plotly_chart(metric_radar_chart(result), use_container_width=True)
    with c4:
        st.subheader("✨ AI Insight")
        analysis_slot = st.empty()

    with st.expander("Metrics table"):
        df = metrics_frame(result).pivot(index="metric", columns="model", values="value")
        st.dataframe(df.style.format("{:.2f}%"), use_container_width=True)
        st.download_button("Download metrics CSV", df.to_csv().encode(), "ensemble_metrics.csv", "text/csv")
    return analysis_slot


def render_analysis(slot):
    if controller.is_analyzing:
        slot.info("Analyzing performance metrics...")
    elif controller.analysis:
        slot.markdown(controller.analysis)
    else:
        slot.caption("Run the simulation to generate an AI comparison analysis.")


results_slot = st.empty()
rendered = {}

if run_clicked:
    def show_partial(result):
        # Charts go up as soon as metrics exist; the narrative fills in afterwards.
        with results_slot.container():
            rendered["analysis_slot"] = render_results(result)
        render_analysis(rendered["analysis_slot"])

    with st.spinner("Training..."):
        controller.run(on_simulated=show_partial)

if "analysis_slot" in rendered:
    render_analysis(rendered["analysis_slot"])
elif controller.result is None:
    results_slot.info("Waiting for simulation...")
else:
    with results_slot.container():
        render_analysis(render_results(controller.result))
