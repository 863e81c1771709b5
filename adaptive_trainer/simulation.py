"""Headless module runs driven by a synthetic operator.

A module run is a series of trials at adapting difficulty.  The synthetic
operator stands in for a human at the controls: it chases the 1D target with
a proportional controller plus motor noise, or answers mental rotation items
with a difficulty-dependent hit probability.  Everything is derived from one
seed, so a run can be replayed exactly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import typer

from .difficulty import DifficultyController, RmseTracker
from .results import (
    TrialResult,
    build_trial_result,
    metrics_to_dict,
    samples_to_events,
    spatial_responses_to_events,
)
from .samples import SpatialResponse
from .spatial_metrics import calculate_spatial_metrics
from .spatial_tasks import OPTION_COUNT, generate_mental_rotation_task
from .targets import TargetConfig, create_target_generator, random_target_kind
from .tracking_metrics import THRESHOLD_1D, calculate_tracking_metrics
from .trial_recorder import SampleRecorder
from .training_core import (
    DEFAULT_DIFFICULTY,
    MetricsFamily,
    RandomSource,
    SeededRng,
    clamp,
    clamp01,
    symmetric_unit,
)

logger = logging.getLogger(__name__)

app = typer.Typer(help="Run a simulated adaptive training module headlessly.")


@dataclass(frozen=True, slots=True)
class OperatorConfig:
    """Synthetic operator behaviour."""

    skill: float = 0.7  # 0 = hopeless, 1 = near perfect
    tick_hz: float = 60.0
    trial_duration_s: float = 20.0
    spatial_items: int = 10

    def __post_init__(self) -> None:
        if not (0.0 <= self.skill <= 1.0):
            raise ValueError("skill must be in [0, 1]")
        if self.tick_hz <= 0.0:
            raise ValueError("tick_hz must be > 0")
        if self.trial_duration_s <= 0.0:
            raise ValueError("trial_duration_s must be > 0")
        if self.spatial_items < 1:
            raise ValueError("spatial_items must be >= 1")


def simulate_tracking_trial(
    *,
    trial_id: str,
    module_run_id: str,
    difficulty: float,
    seed: int,
    operator: OperatorConfig,
) -> TrialResult:
    rng = SeededRng(seed)
    target_rng = rng.spawn()
    config = TargetConfig(kind=random_target_kind(rng), difficulty=difficulty)
    target = create_target_generator(config, target_rng)

    dt = 1.0 / operator.tick_hz
    ticks = int(operator.trial_duration_s * operator.tick_hz)
    gain = 2.0 + 8.0 * operator.skill
    noise = 0.04 * (1.0 - operator.skill) + 0.005

    recorder = SampleRecorder()
    recorder.start()
    cursor = config.bounds.mid
    for i in range(ticks):
        t_ms = i * dt * 1000.0
        position = target.get_position() if i == 0 else target.update(dt)
        stick = clamp(gain * (position - cursor) * 0.1, -1.0, 1.0)
        cursor = config.bounds.clamp(cursor + stick * dt * 10.0 + noise * symmetric_unit(rng))
        recorder.record_at(t_ms, target_position=position, cursor_position=cursor, input_value=stick)

    samples = recorder.finalize()
    metrics = calculate_tracking_metrics(samples, THRESHOLD_1D)
    return build_trial_result(
        trial_id=trial_id,
        module_run_id=module_run_id,
        difficulty=difficulty,
        duration_ms=ticks * dt * 1000.0,
        metrics=metrics,
        events=samples_to_events(samples),
        seed=seed,
    )


def _answer(correct_answer: int, p_correct: float, rng: RandomSource) -> int:
    if rng.random() < p_correct:
        return correct_answer
    return rng.choice([i for i in range(OPTION_COUNT) if i != correct_answer])


def simulate_spatial_trial(
    *,
    trial_id: str,
    module_run_id: str,
    difficulty: float,
    seed: int,
    operator: OperatorConfig,
) -> TrialResult:
    rng = SeededRng(seed)
    p_correct = clamp01(0.5 + 0.5 * operator.skill - 0.3 * difficulty)

    responses: list[SpatialResponse] = []
    for index in range(operator.spatial_items):
        task = generate_mental_rotation_task(difficulty, rng)
        rt = (1200.0 + 1600.0 * difficulty) * (1.5 - 0.5 * operator.skill) + rng.uniform(-200.0, 200.0)
        responses.append(
            SpatialResponse(
                task_index=index,
                selected_answer=_answer(task.correct_answer, p_correct, rng),
                correct_answer=task.correct_answer,
                reaction_time_ms=rt,
            )
        )

    return build_trial_result(
        trial_id=trial_id,
        module_run_id=module_run_id,
        difficulty=difficulty,
        duration_ms=sum(r.reaction_time_ms for r in responses),
        metrics=calculate_spatial_metrics(responses),
        events=spatial_responses_to_events(responses),
        seed=seed,
    )


_TRIALS = {
    MetricsFamily.TRACKING: simulate_tracking_trial,
    MetricsFamily.SPATIAL: simulate_spatial_trial,
}


def run_module(
    family: MetricsFamily,
    *,
    trials: int,
    seed: int,
    initial_difficulty: float = DEFAULT_DIFFICULTY,
    operator: OperatorConfig | None = None,
) -> list[TrialResult]:
    """Run ``trials`` consecutive trials, adapting difficulty after each one."""

    family = MetricsFamily(family)
    if family not in _TRIALS:
        raise ValueError(f"no simulated trial for {family} modules")
    if trials < 1:
        raise ValueError("trials must be >= 1")

    operator = operator or OperatorConfig()
    run_trial = _TRIALS[family]
    controller = DifficultyController(initial_difficulty=initial_difficulty)
    seeds = SeededRng(seed)
    module_run_id = f"sim-{family}-{seed}"

    results: list[TrialResult] = []
    for index in range(trials):
        result = run_trial(
            trial_id=f"{module_run_id}-{index + 1:03d}",
            module_run_id=module_run_id,
            difficulty=controller.difficulty,
            seed=seeds.randint(0, 2**31 - 1),
            operator=operator,
        )
        results.append(result)
        controller.update(result.metrics)

    logger.info(
        "module run %s finished: %d trials, final difficulty %.2f, success rate %.2f",
        module_run_id,
        trials,
        controller.difficulty,
        controller.success_rate,
    )
    return results


def _summary(result: TrialResult) -> str:
    m = metrics_to_dict(result.metrics)
    if result.family is MetricsFamily.TRACKING:
        detail = f"rmse={m['rmse']:.3f} on_target={m['time_on_target']:.1f}%"
    else:
        detail = f"accuracy={m['accuracy']:.2f} rt={m['reaction_time_ms']:.0f}ms"
    return f"{result.trial_id}  d={result.difficulty:.2f}  {detail}"


@app.command()
def simulate(
    module: MetricsFamily = typer.Option(MetricsFamily.TRACKING, "--module", help="tracking or spatial."),
    trials: int = typer.Option(10, "--trials", min=1, help="Number of trials in the run."),
    seed: int = typer.Option(0, "--seed", help="Seed for the whole run."),
    difficulty: float = typer.Option(DEFAULT_DIFFICULTY, "--difficulty", min=0.0, max=1.0),
    skill: float = typer.Option(0.7, "--skill", min=0.0, max=1.0, help="Synthetic operator skill."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Simulate one module run and print per-trial metrics."""

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        results = run_module(
            module,
            trials=trials,
            seed=seed,
            initial_difficulty=difficulty,
            operator=OperatorConfig(skill=skill),
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    tracker = RmseTracker()
    for result in results:
        typer.echo(_summary(result))
        if result.family is MetricsFamily.TRACKING:
            tracker.add(result.metrics)
    if module is MetricsFamily.TRACKING:
        typer.echo(f"mean rmse over last {min(len(results), 10)} trials: {tracker.average_rmse():.3f}")


def main() -> None:
    app()
