"""
test_acquisition.py

Tests for the acquisition loop: sampling over time, event order, stopping
and pacing.

Run with: pytest
"""

import dataclasses

import numpy as np
import pytest

from acquisition import (AcquisitionConfig, AcquisitionLoop, AcquisitionState, Sample,
                         acquire, samples_to_arrays)
from adc_core import ConfigurationError, convert_value
from characterize import assess_peak
from events import (AllBitsCleared, BitCleared, BitSet, EventRecorder, Finished,
                    Initialize, SampleSaved)
from pacing import ExecutionMode, Pacer
from signals import FunctionSignal, PulseSignal


def constant(value, horizon):
    return FunctionSignal(lambda t: value, horizon=horizon)


def two_bit_run(pacer=None):
    config = AcquisitionConfig(n_bits=2, vref=4.0, sample_interval=0.5)
    recorder = EventRecorder()
    loop = AcquisitionLoop(config, constant(2.9, horizon=1.0), recorder, pacer)
    loop.run()
    return loop, recorder


# Configuration

def test_config_defaults():
    config = AcquisitionConfig()
    assert (config.n_bits, config.vref, config.sample_interval) == (8, 0.02, 0.07)


@pytest.mark.parametrize("kwargs", [
    dict(n_bits=1),
    dict(n_bits=65),
    dict(vref=0.0),
    dict(vref=-0.02),
    dict(sample_interval=0.0),
    dict(sample_interval=-0.1),
    dict(sample_interval=float("nan")),
])
def test_config_rejects_invalid_values(kwargs):
    with pytest.raises(ConfigurationError):
        AcquisitionConfig(**kwargs)


def test_config_is_frozen():
    config = AcquisitionConfig()
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.n_bits = 4


# Sampling

def test_exhausted_source_gives_no_samples():
    recorder = EventRecorder()
    samples = acquire(AcquisitionConfig(), constant(0.01, horizon=0.0), recorder)

    assert samples == []
    assert recorder.events == [
        Initialize(8, 0.02),
        AllBitsCleared(0.0, 0.0),
        Finished(),
    ]
    assert len(recorder.of_type(Finished)) == 1


def test_samples_taken_at_fixed_interval():
    config = AcquisitionConfig(n_bits=8, vref=1.0, sample_interval=0.25)
    loop = AcquisitionLoop(config, FunctionSignal(lambda t: t, horizon=1.0))
    samples = loop.run()

    assert [s.time for s in samples] == [0.0, 0.25, 0.5, 0.75]
    expected = [convert_value(t, 8, 1.0) for t in (0.0, 0.25, 0.5, 0.75)]
    assert [s.voltage for s in samples] == [c.voltage for c in expected]
    assert loop.codes == [c.code for c in expected]
    assert loop.state is AcquisitionState.FINISHED
    assert loop.dac.register == 0


def test_event_trace_is_complete_and_ordered():
    _, recorder = two_bit_run()
    kept = 4.0 * (2 / 3)

    cycle = lambda t: [
        BitSet(1, t, kept),
        BitSet(0, t, 4.0),
        BitCleared(0, t, kept),
        SampleSaved(t, kept),
    ]
    assert recorder.events == (
        [Initialize(2, 4.0), AllBitsCleared(0.0, 0.0)]
        + cycle(0.0)
        + [AllBitsCleared(0.0, 0.0), AllBitsCleared(0.5, 0.0)]
        + cycle(0.5)
        + [AllBitsCleared(0.5, 0.0), AllBitsCleared(1.0, 0.0), Finished()]
    )


def test_acquisition_is_deterministic():
    first, first_events = two_bit_run()
    second, second_events = two_bit_run()
    assert first.samples == second.samples
    assert first_events.events == second_events.events


def test_run_only_once():
    loop, _ = two_bit_run()
    assert loop.step() is False
    with pytest.raises(RuntimeError):
        loop.run()


def test_stepping_announces_configuration_first():
    recorder = EventRecorder()
    loop = AcquisitionLoop(AcquisitionConfig(), PulseSignal(), recorder)
    while loop.step():
        pass

    assert recorder.events[0] == Initialize(8, 0.02)
    assert len(recorder.of_type(Initialize)) == 1
    assert recorder.events[-1] == Finished()
    assert len(recorder.of_type(Finished)) == 1
    assert len(loop.samples) == 10


def test_run_after_stepping_is_refused():
    loop = AcquisitionLoop(AcquisitionConfig(), PulseSignal())
    assert loop.step() is True
    with pytest.raises(RuntimeError):
        loop.run()


def test_sample_at_horizon_is_excluded():
    samples = acquire(AcquisitionConfig(sample_interval=0.35), PulseSignal())
    assert [s.time for s in samples] == [0.0, 0.35]


def test_sample_is_immutable():
    sample = Sample(0.1, 0.2)
    with pytest.raises(dataclasses.FrozenInstanceError):
        sample.voltage = 0.3


# Stopping

def test_stop_between_cycles():
    config = AcquisitionConfig(n_bits=8, vref=1.0, sample_interval=0.1)
    recorder = EventRecorder()

    def sink(event):
        recorder(event)
        if isinstance(event, SampleSaved):
            loop.stop()

    loop = AcquisitionLoop(config, constant(0.5, horizon=10.0), sink)
    samples = loop.run()

    assert len(samples) == 1
    assert recorder.events[-1] == Finished()
    assert len(recorder.of_type(Finished)) == 1
    assert len(recorder.of_type(BitSet)) == 8
    assert loop.dac.register == 0


def test_stop_before_run():
    recorder = EventRecorder()
    loop = AcquisitionLoop(AcquisitionConfig(), constant(0.01, horizon=0.7), recorder)
    loop.stop()
    assert loop.run() == []
    assert [type(e) for e in recorder] == [Initialize, AllBitsCleared, Finished]


# Pacing

def test_pacing_in_run_mode():
    sleeps = []
    paced, _ = two_bit_run(Pacer(ExecutionMode.RUN, sleep=sleeps.append))
    unpaced, _ = two_bit_run()

    assert paced.samples == unpaced.samples
    # two cycles of (clear + 3 bit events + save), then the final clear
    assert sleeps == [0.2] * 11


def test_pacing_in_fastest_mode_only_paces_decay():
    sleeps = []
    two_bit_run(Pacer(ExecutionMode.RUN_FASTEST, sleep=sleeps.append))
    assert sleeps == [0.001, 0.001]


# Whole signal

def test_default_interval_misses_main_peak():
    samples = acquire(AcquisitionConfig(), PulseSignal())
    assert len(samples) == 10
    assert not assess_peak(samples)


def test_short_interval_finds_main_peak():
    samples = acquire(AcquisitionConfig(sample_interval=0.01), PulseSignal())
    assert assess_peak(samples)
    times, voltages = samples_to_arrays(samples)
    assert times[np.argmax(voltages)] == pytest.approx(0.25, abs=0.011)
    assert np.max(voltages) <= 0.015


def test_samples_to_arrays():
    times, voltages = samples_to_arrays([Sample(0.0, 1.0), Sample(0.5, 2.0)])
    np.testing.assert_array_equal(times, [0.0, 0.5])
    np.testing.assert_array_equal(voltages, [1.0, 2.0])
    empty_t, empty_v = samples_to_arrays([])
    assert empty_t.shape == empty_v.shape == (0,)
