import math
from dataclasses import dataclass, asdict
from typing import Optional, Tuple

import numpy as np

# --- CONFIGURATION: KNOB RANGES ---
# These mirror the slider bounds in app.py. Anything outside is clamped.
N_ESTIMATORS_RANGE = (3, 50)
NOISE_LEVEL_RANGE = (0.0, 1.0)
DATASET_SIZE_RANGE = (100, 5000)
CV_FOLD_OPTIONS = (3, 5, 10)

# --- CONFIGURATION: HEURISTIC ---
METRIC_FLOOR = 0.5
METRIC_CEILING = 0.99
HISTORY_EPOCHS = 20

STANDARD_LABEL = "Standard Ensemble (Voting)"
STACKING_LABEL = "Stacking Ensemble"

# Offsets applied to each bundle's accuracy term.
STANDARD_OFFSETS = {
    "accuracy": 0.0,
    "precision": -0.02,
    "recall": 0.01,
    "f1_score": -0.005,
    "auc": 0.03,
}
STACKING_OFFSETS = {
    "accuracy": 0.0,
    "precision": -0.01,
    "recall": 0.015,
    "f1_score": 0.002,
    "auc": 0.04,
}


def _clamp(value, low, high):
    # NaN compares false against everything, so max() would let it through.
    if math.isnan(value):
        return low
    return min(max(value, low), high)


def _nearest_fold(value):
    # Ties go to the smaller option (4 -> 3).
    value = _clamp(value, CV_FOLD_OPTIONS[0], CV_FOLD_OPTIONS[-1])
    return min(CV_FOLD_OPTIONS, key=lambda fold: (abs(fold - value), fold))


# --- DATA MODEL ---
@dataclass(frozen=True)
class SimulationConfig:
    """
    The four user-editable knobs.
    Out-of-range values are pulled back to the nearest bound instead of raising.
    """
    n_estimators: int = 10
    noise_level: float = 0.2
    cv_folds: int = 5
    dataset_size: int = 1000

    def __post_init__(self):
        object.__setattr__(self, "n_estimators", int(round(_clamp(self.n_estimators, *N_ESTIMATORS_RANGE))))
        object.__setattr__(self, "noise_level", float(_clamp(self.noise_level, *NOISE_LEVEL_RANGE)))
        object.__setattr__(self, "cv_folds", _nearest_fold(self.cv_folds))
        object.__setattr__(self, "dataset_size", int(round(_clamp(self.dataset_size, *DATASET_SIZE_RANGE))))


@dataclass(frozen=True)
class ModelMetrics:
    accuracy: float
    precision: float
    recall: float
    f1_score: float
    auc: float

    def as_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class ConvergencePoint:
    epoch: int
    standard_loss: float
    stacking_loss: float


@dataclass(frozen=True)
class SimulationResult:
    standard: ModelMetrics
    stacking: ModelMetrics
    history: Tuple[ConvergencePoint, ...]


# --- METRIC FUNCTIONS ---
def clamp_metric(value):
    """Keeps a fabricated metric inside [0.5, 0.99]."""
    return _clamp(value, METRIC_FLOOR, METRIC_CEILING)


def standard_accuracy_raw(config):
    """
    Pre-clamp accuracy of the voting ensemble.
    More estimators and more data help a little (log scale), noise hurts linearly.
    """
    complexity_benefit = math.log(config.n_estimators) * 0.01
    data_benefit = math.log(config.dataset_size) * 0.02
    return 0.75 - (config.noise_level * 0.3) + complexity_benefit + data_benefit


def stacking_bonus(config):
    """The meta-learner's edge grows with noise."""
    return 0.03 + (config.noise_level * 0.15)


def build_metrics(accuracy_raw, offsets):
    return ModelMetrics(**{name: clamp_metric(accuracy_raw + offset) for name, offset in offsets.items()})


def make_rng(seed=None):
    """Seeded generator for reproducible jitter; None gives fresh OS entropy."""
    return np.random.default_rng(seed)


def generate_history(rng: Optional[np.random.Generator] = None, jitter=True):
    """
    Synthetic loss curves for HISTORY_EPOCHS epochs.
    Stacking starts slightly higher but decays faster.
    """
    rng = rng if rng is not None else make_rng()
    epochs = np.arange(1, HISTORY_EPOCHS + 1)
    progress = epochs / HISTORY_EPOCHS

    standard = 0.8 * np.exp(-2 * progress)
    stacking = 0.85 * np.exp(-2.5 * progress)
    if jitter:
        standard = standard + rng.uniform(0.0, 0.05, HISTORY_EPOCHS)
        stacking = stacking + rng.uniform(0.0, 0.03, HISTORY_EPOCHS)

    return tuple(
        ConvergencePoint(epoch=int(e), standard_loss=float(s), stacking_loss=float(k))
        for e, s, k in zip(epochs, standard, stacking)
    )


def simulate_metrics(config, rng=None):
    """
    Fabricates a SimulationResult for the given knobs.
    Metrics are deterministic; only the history jitter changes between calls.
    """
    standard_raw = standard_accuracy_raw(config)
    stacking_raw = standard_raw + stacking_bonus(config)

    return SimulationResult(
        standard=build_metrics(standard_raw, STANDARD_OFFSETS),
        stacking=build_metrics(stacking_raw, STACKING_OFFSETS),
        history=generate_history(rng),
    )
