'''Fixed macro-step integration loop
IntegrationDriver, StopPolicy and run_scenario'''

from dataclasses import dataclass
from typing import Any, Optional
import numpy as np
from .builder import PhysicalStateBuilder
from .defaults import MACRO_STEP_YEARS, YEAR
from .errors import IntegrationFailure, LidovError
from .extractor import OrbitalElementsExtractor
from .recorder import TimeSeriesRecorder
from .spin import SpinConfigurator
from .utils import Timer, format_duration

DEFAULT_MACRO_STEP = MACRO_STEP_YEARS * YEAR


@dataclass(frozen=True)
class StopPolicy:
    """
    When the integration loop ends.

    Checked only at macro-step boundaries, before each advance.

    Attributes
    ----------
    max_steps : int
        Macro-steps to perform
    max_time : float or None
        Do not start a step that would end past this time [code units]
    stop_event : object, optional
        Anything with ``is_set()`` (e.g. threading.Event); a set event
        ends the loop at the next boundary
    """
    max_steps: int = 1_000_000
    max_time: Optional[float] = None
    stop_event: Any = None

    def reason(self, steps: int, next_time: float) -> Optional[str]:
        """Why the loop should stop before starting another step, or None."""
        if self.stop_event is not None and self.stop_event.is_set():
            return "stop requested"
        if steps >= self.max_steps:
            return "max steps reached"
        if self.max_time is not None and next_time > self.max_time * (1 + 1e-12):
            return "max time reached"
        return None


@dataclass(frozen=True)
class RunSummary:
    """
    Outcome of IntegrationDriver.run().

    Attributes
    ----------
    steps : int
        Macro-steps completed (and recorded)
    rows : int
        Rows written, including an initial row if requested
    final_time : float
        Clock at the last completed boundary [code units]
    stop_reason : str
    elapsed : float
        Wall-clock seconds
    """
    steps: int
    rows: int
    final_time: float
    stop_reason: str
    elapsed: float

    @property
    def final_time_years(self) -> float:
        return self.final_time / YEAR


class IntegrationDriver:
    """
    Advance a configured simulation in fixed macro-steps and record the
    state after every step.

    Loop: check stop policy, advance to t + dt, extract, record. An
    engine failure propagates as IntegrationFailure with the clock time
    and the bodies involved; the recorder is closed in every case.

    Parameters
    ----------
    sim : Simulation
        Built and spin-configured simulation
    extension : SpinExtension
        Its spin extension
    recorder : TimeSeriesRecorder
        Unopened recorder; the driver owns its lifetime
    policy : StopPolicy, optional
        Default: 10^6 steps
    macro_step : float, optional
        Step between rows [code units], default 100 years
    record_initial : bool, optional
        Write the t = 0 state before the first step
    extractor : OrbitalElementsExtractor, optional
        Default uses the simulation's G
    """
    def __init__(self, sim, extension, recorder: TimeSeriesRecorder,
                 policy: Optional[StopPolicy] = None,
                 macro_step: float = DEFAULT_MACRO_STEP,
                 record_initial: bool = False,
                 extractor: Optional[OrbitalElementsExtractor] = None):
        if not np.isfinite(macro_step) or macro_step <= 0:
            raise ValueError(f"Macro-step must be positive, got {macro_step}")
        self.sim = sim
        self.extension = extension
        self.recorder = recorder
        self.policy = policy if policy is not None else StopPolicy()
        self.macro_step = float(macro_step)
        self.record_initial = record_initial
        self.extractor = (extractor if extractor is not None
                          else OrbitalElementsExtractor(getattr(sim, 'G', 1.0)))
        self._t = float(sim.t)

    @property
    def t(self) -> float:
        """Clock at the last completed boundary [code units]"""
        return self._t

    def run(self) -> RunSummary:
        """
        Execute the loop.

        Returns
        -------
        RunSummary

        Raises
        ------
        IntegrationFailure
            If the engine cannot reach a boundary
        OutputError
            If a row cannot be written
        """
        steps = 0
        t0 = self._t
        with Timer("Integration", verbose=False) as timer:
            with self.recorder:
                if self.record_initial:
                    self.recorder.append(self.extractor.compute(self.sim, self.extension))
                while True:
                    # k-th boundary is t0 + k * dt
                    target = t0 + (steps + 1) * self.macro_step
                    reason = self.policy.reason(steps, target)
                    if reason is not None:
                        break
                    self._advance(target)
                    steps += 1
                    self.recorder.append(self.extractor.compute(self.sim, self.extension))
                rows = self.recorder.rows_written

        summary = RunSummary(steps, rows, self._t, reason, timer.elapsed)
        print(f"Run finished ({reason}): {steps} steps, "
              f"t={summary.final_time_years:f} yr, {format_duration(timer.elapsed)}")
        return summary

    def _advance(self, target: float):
        try:
            self.sim.advance(target)
        except IntegrationFailure:
            raise
        except (LidovError, ValueError, RuntimeError) as exc:
            raise IntegrationFailure(
                f"Engine error: {exc}", getattr(self.sim, 't', self._t), target) from exc
        self._t = target


def run_scenario(scenario, policy: Optional[StopPolicy] = None,
                 output: Optional[str] = None) -> RunSummary:
    """
    Build, configure and run a Scenario end to end.

    Parameters
    ----------
    scenario : Scenario
    policy : StopPolicy, optional
        Overrides the limits in ``scenario.run`` (e.g. to add a stop event)
    output : str, optional
        Overrides ``scenario.run.output``

    Returns
    -------
    RunSummary
    """
    run = scenario.run
    sim = PhysicalStateBuilder(scenario.star, scenario.planet,
                               scenario.perturber).build()
    extension, _ = SpinConfigurator(scenario.star_spin,
                                    scenario.planet_spin).configure(sim)
    if policy is None:
        max_time = None if run.max_time_years is None else run.max_time_years * YEAR
        policy = StopPolicy(max_steps=run.n_steps, max_time=max_time)
    recorder = TimeSeriesRecorder(
        output if output is not None else run.output,
        precision=run.precision,
        progress_every=run.progress_every,
    )
    driver = IntegrationDriver(sim, extension, recorder, policy,
                               macro_step=run.macro_step_years * YEAR,
                               record_initial=run.record_initial)
    return driver.run()
