import dataclasses
import logging
import os
import threading
import time
from enum import Enum

from core_logic import SimulationConfig, make_rng, simulate_metrics
from narrative_service import request_narrative

logger = logging.getLogger(__name__)

# --- CONFIGURATION ---
# Artificial "training" wait so the UI has something to animate.
DEFAULT_DELAY_SECONDS = 1.5


class RunState(str, Enum):
    IDLE = "idle"
    SIMULATING = "simulating"
    ANALYZING = "analyzing"
    ANALYZED = "analyzed"


BUSY_STATES = (RunState.SIMULATING, RunState.ANALYZING)


class SimulationController:
    """
    Holds the current knobs, the last result and its narrative.

    One run = delay -> heuristic -> narrative. A second run() while one is in
    flight is ignored. Each run gets a generation number; anything a run
    tries to store after it was cancelled or superseded is dropped.
    """

    def __init__(self, config=None, narrator=request_narrative, delay_seconds=DEFAULT_DELAY_SECONDS,
                 rng=None, sleep=time.sleep):
        self.config = config or SimulationConfig()
        self.result = None
        self.analysis = None
        self.state = RunState.IDLE
        self.narrator = narrator
        self.delay_seconds = delay_seconds
        self.rng = rng
        self._sleep = sleep
        self._lock = threading.Lock()
        self._generation = 0

    @classmethod
    def from_env(cls, **kwargs):
        """Reads SIMULATION_DELAY_SECONDS and SIMULATION_SEED at call time."""
        delay = float(os.environ.get("SIMULATION_DELAY_SECONDS", DEFAULT_DELAY_SECONDS))
        seed = os.environ.get("SIMULATION_SEED")
        rng = make_rng(int(seed)) if seed not in (None, "") else None
        return cls(delay_seconds=delay, rng=rng, **kwargs)

    @property
    def is_simulating(self):
        return self.state == RunState.SIMULATING

    @property
    def is_analyzing(self):
        return self.state == RunState.ANALYZING

    @property
    def is_busy(self):
        return self.state in BUSY_STATES

    def update_config(self, **changes):
        """Applies knob changes (clamped). Returns False while a run is in flight."""
        with self._lock:
            if self.is_busy:
                logger.info("Config change ignored while %s.", self.state.value)
                return False
            self.config = dataclasses.replace(self.config, **changes)
            return True

    def cancel(self):
        """Abandons the in-flight run. Its late narrative, if any, is discarded."""
        with self._lock:
            if not self.is_busy:
                return False
            self._abandon()
            logger.info("Run cancelled; state -> %s.", self.state.value)
            return True

    def run(self, on_simulated=None):
        """
        Runs one full cycle and returns its SimulationResult.
        Returns None when rejected (busy) or cancelled before metrics were stored.
        """
        with self._lock:
            if self.is_busy:
                logger.info("Run request ignored: controller is %s.", self.state.value)
                return None
            self._generation += 1
            generation = self._generation
            config = self.config
            self.analysis = None
            self.state = RunState.SIMULATING

        logger.info("Run %d started: %s", generation, config)
        try:
            return self._execute(generation, config, on_simulated)
        except BaseException:
            # Streamlit's rerun/stop signals land here too; never leave the session stuck busy.
            with self._lock:
                if generation == self._generation:
                    self._abandon()
                    logger.warning("Run %d interrupted; state -> %s.", generation, self.state.value)
            raise

    def _abandon(self):
        # Caller holds the lock.
        self._generation += 1
        self.state = RunState.ANALYZED if self.result is not None else RunState.IDLE

    def _execute(self, generation, config, on_simulated):
        self._sleep(self.delay_seconds)
        result = simulate_metrics(config, rng=self.rng)

        with self._lock:
            if generation != self._generation:
                logger.info("Run %d cancelled before metrics were stored.", generation)
                return None
            self.result = result
            self.state = RunState.ANALYZING

        if on_simulated is not None:
            on_simulated(result)

        text = self.narrator(config, result.standard, result.stacking)

        with self._lock:
            if generation != self._generation:
                logger.info("Discarding stale narrative from run %d.", generation)
                return result
            self.analysis = text
            self.state = RunState.ANALYZED

        logger.info("Run %d finished (standard acc %.3f, stacking acc %.3f).",
                    generation, result.standard.accuracy, result.stacking.accuracy)
        return result
