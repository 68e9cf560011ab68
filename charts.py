import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from core_logic import STANDARD_LABEL, STACKING_LABEL

# --- CONFIGURATION: STYLE ---
STANDARD_COLOR = "#3b82f6"
STACKING_COLOR = "#10b981"
COLOR_MAP = {STANDARD_LABEL: STANDARD_COLOR, STACKING_LABEL: STACKING_COLOR}

BAR_METRICS = [("Accuracy", "accuracy"), ("F1 Score", "f1_score"), ("Precision", "precision"), ("Recall", "recall")]
RADAR_METRICS = [("Accuracy", "accuracy"), ("Precision", "precision"), ("Recall", "recall"), ("F1", "f1_score"), ("AUC", "auc")]


def summary_cards(config, result):
    """Headline numbers shown above the charts as (label, value) pairs."""
    improvement = (result.stacking.accuracy - result.standard.accuracy) * 100
    return [
        ("Std Accuracy", f"{result.standard.accuracy * 100:.1f}%"),
        ("Stack Accuracy", f"{result.stacking.accuracy * 100:.1f}%"),
        ("Improvement", f"{improvement:+.1f}%"),
        ("Samples", f"{config.dataset_size}"),
    ]


def metrics_frame(result):
    """Long format: one row per (metric, model), value in percent."""
    rows = []
    for label, metrics in ((STANDARD_LABEL, result.standard), (STACKING_LABEL, result.stacking)):
        for name, value in metrics.as_dict().items():
            rows.append({"metric": name, "model": label, "value": round(value * 100, 2)})
    return pd.DataFrame(rows)


def history_frame(result):
    return pd.DataFrame(
        [{"epoch": p.epoch, "standard_loss": p.standard_loss, "stacking_loss": p.stacking_loss} for p in result.history]
    )


def performance_bar_chart(result):
    rows = []
    for title, field in BAR_METRICS:
        rows.append({"Metric": title, "Model": STANDARD_LABEL, "Score": round(getattr(result.standard, field) * 100, 1)})
        rows.append({"Metric": title, "Model": STACKING_LABEL, "Score": round(getattr(result.stacking, field) * 100, 1)})

    fig = px.bar(
        pd.DataFrame(rows), x="Metric", y="Score", color="Model", barmode="group",
        title="Comparative Performance",
        text_auto='.1f',
        color_discrete_map=COLOR_MAP
    )
    # Everything lands above 50%, so start the axis at 60 to make gaps visible.
    fig.update_yaxes(range=[60, 100])
    return fig


def convergence_line_chart(result):
    frame = history_frame(result)
    fig = go.Figure()
    fig.add_trace(go.Scatter(x=frame["epoch"], y=frame["standard_loss"], mode="lines",
                             name="Standard Loss", line=dict(color=STANDARD_COLOR, width=2)))
    fig.add_trace(go.Scatter(x=frame["epoch"], y=frame["stacking_loss"], mode="lines",
                             name="Stacking Loss", line=dict(color=STACKING_COLOR, width=2)))
    fig.update_layout(title="Model Convergence (Loss)", xaxis_title="Training Epochs", yaxis_title="Loss")
    return fig


def metric_radar_chart(result):
    subjects = [title for title, _ in RADAR_METRICS]
    fig = go.Figure()
    for label, metrics, color in ((STANDARD_LABEL, result.standard, STANDARD_COLOR),
                                  (STACKING_LABEL, result.stacking, STACKING_COLOR)):
        fig.add_trace(go.Scatterpolar(
            r=[getattr(metrics, field) * 100 for _, field in RADAR_METRICS],
            theta=subjects,
            fill="toself",
            name=label,
            line=dict(color=color, width=2),
            opacity=0.6
        ))
    fig.update_layout(title="Metric Balance (Radar)", polar=dict(radialaxis=dict(range=[0, 100])))
    return fig
