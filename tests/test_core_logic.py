import itertools

import pytest

from core_logic import (
    CV_FOLD_OPTIONS,
    HISTORY_EPOCHS,
    SimulationConfig,
    clamp_metric,
    generate_history,
    make_rng,
    simulate_metrics,
    stacking_bonus,
    standard_accuracy_raw,
)

FIELDS = ("accuracy", "precision", "recall", "f1_score", "auc")

GRID = [
    SimulationConfig(n_estimators=n, noise_level=noise, cv_folds=folds, dataset_size=size)
    for n, noise, folds, size in itertools.product(
        (3, 10, 27, 50), (0.0, 0.2, 0.55, 1.0), CV_FOLD_OPTIONS, (100, 1000, 5000)
    )
]


def test_reference_scenario():
    result = simulate_metrics(SimulationConfig(n_estimators=10, noise_level=0.2, cv_folds=5, dataset_size=1000))

    assert result.standard.accuracy == pytest.approx(0.8512, abs=1e-3)
    assert result.stacking.accuracy == pytest.approx(0.9112, abs=1e-3)
    assert result.stacking.accuracy - result.standard.accuracy == pytest.approx(0.06)
    assert result.standard.precision == pytest.approx(result.standard.accuracy - 0.02)
    assert result.stacking.auc == pytest.approx(result.stacking.accuracy + 0.04)


@pytest.mark.parametrize("config", GRID)
def test_metrics_stay_in_bounds(config):
    result = simulate_metrics(config, rng=make_rng(0))
    for bundle in (result.standard, result.stacking):
        for name in FIELDS:
            assert 0.5 <= getattr(bundle, name) <= 0.99


@pytest.mark.parametrize("config", GRID)
def test_stacking_never_trails_standard(config):
    result = simulate_metrics(config, rng=make_rng(0))
    assert result.stacking.accuracy >= result.standard.accuracy


def test_best_case_hits_ceiling():
    result = simulate_metrics(SimulationConfig(n_estimators=50, noise_level=0.0, dataset_size=5000))
    assert result.stacking.auc == 0.99
    assert result.stacking.recall == 0.99


def test_clamp_metric():
    assert clamp_metric(0.1) == 0.5
    assert clamp_metric(-3.0) == 0.5
    assert clamp_metric(1.2) == 0.99
    assert clamp_metric(0.7) == 0.7


def test_noise_moves_the_formula_terms_in_opposite_directions():
    noises = [i / 20 for i in range(21)]
    raws = [standard_accuracy_raw(SimulationConfig(noise_level=n)) for n in noises]
    bonuses = [stacking_bonus(SimulationConfig(noise_level=n)) for n in noises]

    assert all(a > b for a, b in zip(raws, raws[1:]))
    assert all(a < b for a, b in zip(bonuses, bonuses[1:]))


def test_history_shape():
    history = simulate_metrics(SimulationConfig()).history
    assert len(history) == HISTORY_EPOCHS
    assert [p.epoch for p in history] == list(range(1, HISTORY_EPOCHS + 1))
    assert all(p.standard_loss >= 0 and p.stacking_loss >= 0 for p in history)


def test_history_decay_is_non_increasing_without_jitter():
    history = generate_history(jitter=False)
    standard = [p.standard_loss for p in history]
    stacking = [p.stacking_loss for p in history]
    assert all(a >= b for a, b in zip(standard, standard[1:]))
    assert all(a >= b for a, b in zip(stacking, stacking[1:]))
    assert standard[-1] == pytest.approx(0.8 * 2.718281828459045 ** -2)


def test_jitter_stays_within_its_band():
    base = generate_history(jitter=False)
    noisy = generate_history(rng=make_rng(7))
    for clean, jittered in zip(base, noisy):
        assert 0.0 <= jittered.standard_loss - clean.standard_loss <= 0.05
        assert 0.0 <= jittered.stacking_loss - clean.stacking_loss <= 0.03


def test_repeat_runs_share_metrics_but_not_history():
    config = SimulationConfig(n_estimators=10, noise_level=0.2, cv_folds=5, dataset_size=1000)
    first = simulate_metrics(config)
    second = simulate_metrics(config)

    assert first.standard == second.standard
    assert first.stacking == second.stacking
    assert first.history != second.history


def test_seeded_history_is_reproducible():
    config = SimulationConfig()
    assert simulate_metrics(config, rng=make_rng(42)).history == simulate_metrics(config, rng=make_rng(42)).history


@pytest.mark.parametrize(
    "kwargs, expected",
    [
        ({"n_estimators": 1}, {"n_estimators": 3}),
        ({"n_estimators": 500}, {"n_estimators": 50}),
        ({"n_estimators": 7.6}, {"n_estimators": 8}),
        ({"noise_level": -0.5}, {"noise_level": 0.0}),
        ({"noise_level": 1.5}, {"noise_level": 1.0}),
        ({"dataset_size": 10}, {"dataset_size": 100}),
        ({"dataset_size": 99999}, {"dataset_size": 5000}),
        ({"cv_folds": 4}, {"cv_folds": 3}),
        ({"cv_folds": 7}, {"cv_folds": 5}),
        ({"cv_folds": 8}, {"cv_folds": 10}),
        ({"cv_folds": 100}, {"cv_folds": 10}),
        ({"noise_level": float("nan")}, {"noise_level": 0.0}),
        ({"n_estimators": float("nan")}, {"n_estimators": 3}),
        ({"dataset_size": float("nan")}, {"dataset_size": 100}),
        ({"dataset_size": float("inf")}, {"dataset_size": 5000}),
        ({"cv_folds": float("nan")}, {"cv_folds": 3}),
    ],
)
def test_config_clamps_instead_of_raising(kwargs, expected):
    config = SimulationConfig(**kwargs)
    for name, value in expected.items():
        assert getattr(config, name) == value


def test_config_defaults():
    assert SimulationConfig() == SimulationConfig(n_estimators=10, noise_level=0.2, cv_folds=5, dataset_size=1000)
