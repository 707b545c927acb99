"""
test_characterize.py

Tests for the acquisition characterization helpers.

Run with: pytest
"""

import numpy as np
import pytest

from acquisition import AcquisitionConfig, Sample, acquire
from adc_core import ConfigurationError
from characterize import assess_peak, compute_dnl_inl, print_summary, quantization_error
from signals import FunctionSignal, PulseSignal


def test_dnl_inl_of_ideal_ladder():
    dnl, inl = compute_dnl_inl(n_bits=8, vref=0.02, n_samples=20000)
    assert len(dnl) == 255
    assert len(inl) == 255
    assert np.max(np.abs(dnl)) < 0.1
    assert np.max(np.abs(inl)) < 0.5


def test_dnl_inl_limited_resolution():
    with pytest.raises(ValueError):
        compute_dnl_inl(n_bits=17, vref=1.0)


def test_dnl_inl_rejects_bad_resolution():
    with pytest.raises(ConfigurationError):
        compute_dnl_inl(n_bits="8", vref=1.0)
    with pytest.raises(ConfigurationError):
        compute_dnl_inl(n_bits=1, vref=1.0)
    with pytest.raises(ConfigurationError):
        compute_dnl_inl(n_bits=8, vref=0.0)


def test_dnl_inl_needs_one_sample_per_code():
    with pytest.raises(ValueError):
        compute_dnl_inl(n_bits=10, vref=1.0, n_samples=1000)


def test_dnl_inl_default_covers_every_code():
    # 11 bits needs more than the 20000 sample floor
    dnl, _ = compute_dnl_inl(n_bits=11, vref=1.0)
    assert len(dnl) == 2047
    assert np.all(dnl > -1.0)
    assert np.max(np.abs(dnl)) < 0.2


def test_quantization_error_below_one_lsb():
    config = AcquisitionConfig(n_bits=6, vref=1.0, sample_interval=0.01)
    source = FunctionSignal(lambda t: 0.9 * t, horizon=1.0)
    samples = acquire(config, source)
    errors = quantization_error(samples, source)

    lsb = 1.0 / 63
    assert errors.shape == (len(samples),)
    assert np.all(errors <= 0)
    assert np.all(errors >= -lsb * (1 + 1e-9))


def test_assess_peak():
    samples = [Sample(0.0, 0.001), Sample(0.2, 0.004), Sample(0.26, 0.012), Sample(0.5, 0.003)]
    assert assess_peak(samples)
    assert not assess_peak(samples, expected_time=0.5)


def test_assess_peak_needs_unique_maximum():
    samples = [Sample(0.25, 0.01), Sample(0.5, 0.01)]
    assert not assess_peak(samples)


def test_assess_peak_without_signal():
    assert not assess_peak([])
    assert not assess_peak([Sample(0.25, 0.0), Sample(0.5, 0.0)])


def test_print_summary(capsys):
    config = AcquisitionConfig()
    source = PulseSignal()
    samples = acquire(config, source)
    print_summary(config, samples, quantization_error(samples, source), assess_peak(samples))

    out = capsys.readouterr().out
    assert "SAR-ADC ACQUISITION SUMMARY" in out
    assert "Samples       : 10" in out
    assert "not identified" in out


def test_print_summary_without_samples(capsys):
    print_summary(AcquisitionConfig(), [], np.array([]), False)
    assert "Samples       : 0" in capsys.readouterr().out
