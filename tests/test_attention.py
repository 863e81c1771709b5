from __future__ import annotations

import pytest

from adaptive_trainer.attention_metrics import (
    AttentionMetrics,
    calculate_attention_metrics,
    correct_rate,
    d_prime,
    inverse_normal_cdf,
    median,
)
from adaptive_trainer.auditory_stimulus import (
    AuditoryStimulusConfig,
    StimulusEvent,
    ToneKind,
    generate_stimulus_sequence,
    pick_target_kinds,
    response_window,
    score_auditory_responses,
)
from adaptive_trainer.samples import Response
from adaptive_trainer.training_core import SeededRng


def _hit(t: float, rt: float) -> Response:
    return Response(
        stimulus_timestamp_ms=t,
        response_timestamp_ms=t + rt,
        is_target=True,
        responded=True,
        reaction_time_ms=rt,
    )


def test_inverse_normal_cdf_known_points() -> None:
    assert inverse_normal_cdf(0.5) == pytest.approx(0.0, abs=1e-9)
    assert inverse_normal_cdf(0.975) == pytest.approx(1.959964, abs=1e-5)
    assert inverse_normal_cdf(0.01) == pytest.approx(-2.326348, abs=1e-5)
    assert inverse_normal_cdf(0.0) == -6.0
    assert inverse_normal_cdf(1.0) == 6.0


def test_d_prime_for_near_perfect_discrimination() -> None:
    assert d_prime(0.99, 0.01) == pytest.approx(4.65, abs=0.01)


def test_extreme_rates_are_corrected_before_z_transform() -> None:
    assert correct_rate(0.0) == 0.01
    assert correct_rate(1.0) == 0.99
    assert correct_rate(0.4) == 0.4
    assert d_prime(1.0, 0.0) == pytest.approx(d_prime(0.99, 0.01))


def test_median_even_and_odd() -> None:
    assert median([3.0, 1.0, 2.0]) == 2.0
    assert median([4.0, 1.0, 3.0, 2.0]) == 2.5
    assert median([]) == 0.0


def test_empty_responses_give_zero_record() -> None:
    assert calculate_attention_metrics([]) == AttentionMetrics()


def test_attention_rates_and_reaction_times() -> None:
    responses = [
        _hit(0.0, 300.0),
        _hit(1000.0, 500.0),
        Response.no_response(stimulus_timestamp_ms=2000.0, is_target=True),
        Response(
            stimulus_timestamp_ms=3000.0,
            response_timestamp_ms=3400.0,
            is_target=False,
            responded=True,
            reaction_time_ms=400.0,
        ),
        Response.no_response(stimulus_timestamp_ms=4000.0, is_target=False),
    ]
    m = calculate_attention_metrics(responses)

    assert m.hit_rate == pytest.approx(2.0 / 3.0)
    assert m.miss_rate == pytest.approx(1.0 / 3.0)
    assert m.hit_rate + m.miss_rate == pytest.approx(1.0)
    assert m.false_alarm_rate == pytest.approx(0.5)
    assert m.reaction_times_ms == (300.0, 500.0, 400.0)
    assert m.mean_rt_ms == pytest.approx(400.0)
    assert m.median_rt_ms == pytest.approx(400.0)
    assert m.d_prime == pytest.approx(inverse_normal_cdf(2.0 / 3.0) - inverse_normal_cdf(0.5))


def test_no_targets_gives_zero_hit_rate() -> None:
    m = calculate_attention_metrics([Response.no_response(stimulus_timestamp_ms=0.0, is_target=False)])
    assert m.hit_rate == 0.0
    assert m.miss_rate == 0.0
    assert m.false_alarm_rate == 0.0


def test_non_response_cannot_carry_times() -> None:
    with pytest.raises(ValueError):
        Response(
            stimulus_timestamp_ms=0.0,
            response_timestamp_ms=100.0,
            is_target=True,
            responded=False,
            reaction_time_ms=None,
        )


def test_config_requires_non_empty_strict_subset_of_tones() -> None:
    with pytest.raises(ValueError):
        AuditoryStimulusConfig(target_kinds=())
    with pytest.raises(ValueError):
        AuditoryStimulusConfig(target_kinds=tuple(ToneKind))
    cfg = AuditoryStimulusConfig(target_kinds=("high",))  # type: ignore[arg-type]
    assert cfg.target_kinds == (ToneKind.HIGH,)
    assert cfg.non_target_kinds == (ToneKind.LOW, ToneKind.MEDIUM)


def test_pick_target_kinds_picks_one_or_two() -> None:
    rng = SeededRng(4)
    for _ in range(50):
        kinds = pick_target_kinds(rng)
        assert 1 <= len(kinds) <= 2
        assert len(set(kinds)) == len(kinds)


def test_stimulus_sequence_is_deterministic_and_well_formed() -> None:
    cfg = AuditoryStimulusConfig(target_kinds=(ToneKind.LOW,), difficulty=0.5)
    a = generate_stimulus_sequence(cfg, 60_000.0, SeededRng(21))
    b = generate_stimulus_sequence(cfg, 60_000.0, SeededRng(21))
    assert a == b
    assert a[0].timestamp_ms == 500.0
    assert all(e.timestamp_ms < 60_000.0 for e in a)

    for prev, cur in zip(a, a[1:]):
        gap = cur.timestamp_ms - prev.timestamp_ms
        assert 1100.0 - 150.0 <= gap <= 1100.0 + 150.0
    for e in a:
        assert e.is_target == (e.kind in cfg.target_kinds)


def test_response_window_narrows_with_difficulty() -> None:
    assert response_window(0.0).max_ms == pytest.approx(1200.0)
    assert response_window(1.0).max_ms == pytest.approx(600.0)
    assert response_window(0.5).min_ms == 100.0


def test_score_presses_first_in_window_press_counts() -> None:
    events = (
        StimulusEvent(timestamp_ms=500.0, kind=ToneKind.LOW, is_target=True),
        StimulusEvent(timestamp_ms=2000.0, kind=ToneKind.HIGH, is_target=False),
        StimulusEvent(timestamp_ms=3500.0, kind=ToneKind.LOW, is_target=True),
    )
    window = response_window(0.5)  # 100..900 ms
    presses = [
        550.0,  # too early for event 0, ignored
        800.0,  # first valid press for event 0
        900.0,  # second press, ignored
        3450.0,  # attributed to event 1 but too late
    ]
    responses = score_auditory_responses(events, presses, window)

    assert len(responses) == len(events)
    assert responses[0].responded
    assert responses[0].reaction_time_ms == pytest.approx(300.0)
    assert responses[0].response_timestamp_ms == pytest.approx(800.0)
    assert not responses[1].responded
    assert not responses[2].responded
    assert responses[2].is_target


def test_press_before_first_stimulus_is_ignored() -> None:
    events = (StimulusEvent(timestamp_ms=500.0, kind=ToneKind.LOW, is_target=True),)
    responses = score_auditory_responses(events, [100.0], response_window(0.0))
    assert not responses[0].responded
