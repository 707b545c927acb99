"""
characterize.py

Checks how well an acquisition represents its input:
    - Quantization error of the saved samples against the input signal
    - DNL (Differential Non-Linearity)
    - INL (Integral Non-Linearity)
    - Peak assessment: is the main peak of the input visible in the samples?
"""

import numpy as np

from adc_core import ResistorLadderDAC, SARConverter, validate_n_bits
from acquisition import samples_to_arrays

MAX_HISTOGRAM_BITS = 16
MIN_SAMPLES = 20000
# Default ramp density for wide converters
SAMPLES_PER_CODE = 16


def quantization_error(samples, source):
    """
    Difference between each saved sample and the input at the sample time.

    A negative error means the sample lies below the input, which is where
    the SAR search lands for inputs inside the DAC range.

    :param samples: Samples from an acquisition
    :type samples: list[Sample]
    :param source: The signal source that was sampled
    :type source: signals.FunctionSignal or compatible
    :return: Error in volts for each sample
    :rtype: np.ndarray
    """
    times, voltages = samples_to_arrays(samples)
    inputs = np.array([source.next_value(t) for t in times], dtype=float)
    return voltages - inputs


def compute_dnl_inl(n_bits, vref, n_samples=None):
    """
    Compute DNL and INL using the histogram code density method.

    Sweeps a ramp across [0, vref) and counts how many samples land on each
    output code. The top code is only reached at exactly vref, so the
    histogram covers the 2^n_bits - 1 codes below it, each one LSB wide.

    DNL[k] = (actual_bin_width[k] / ideal_bin_width) - 1  in LSB
    INL[k] = cumulative sum of DNL up to code k           in LSB

    :param n_bits: ADC resolution, at most 16 bits
    :type n_bits: int
    :param vref: Reference voltage in volts
    :type vref: float
    :param n_samples: Number of ramp samples, more = lower histogram noise.
        Default is 20000 or 16 per code, whichever is larger. Must be at
        least one per code.
    :type n_samples: int
    :return: Tuple of (DNL in LSB, INL in LSB) for each code
    :rtype: tuple(np.ndarray, np.ndarray)
    :raises ConfigurationError: if n_bits or vref is invalid
    :raises ValueError: if n_bits is above 16 or n_samples is too small
    """
    n_bits = validate_n_bits(n_bits)
    if n_bits > MAX_HISTOGRAM_BITS:
        raise ValueError(f"Histogram test limited to {MAX_HISTOGRAM_BITS} bits, got {n_bits}")

    dac = ResistorLadderDAC(n_bits, vref)
    converter = SARConverter(dac)
    n_codes = dac.full_scale_code

    if n_samples is None:
        n_samples = max(MIN_SAMPLES, SAMPLES_PER_CODE * n_codes)
    elif n_samples < n_codes:
        raise ValueError(f"Need at least {n_codes} ramp samples for {n_bits} bits, got {n_samples}")

    ramp = np.linspace(0.0, vref, n_samples, endpoint=False)
    codes = np.empty(n_samples, dtype=int)
    for i, v in enumerate(ramp):
        dac.clear_all_bits()
        codes[i] = converter.convert(float(v)).code

    counts = np.bincount(codes, minlength=n_codes)[:n_codes].astype(float)

    ideal_count = n_samples / n_codes
    dnl = (counts - ideal_count) / ideal_count
    inl = np.cumsum(dnl)
    inl -= np.linspace(inl[0], inl[-1], n_codes)

    return dnl, inl


def assess_peak(samples, expected_time=0.25, tolerance=0.05):
    """
    Check whether the main peak of the input can be identified in the samples.

    The peak counts as identified when the largest sample is above zero,
    lies within tolerance of expected_time, and is higher than every sample
    outside that window.

    :param samples: Samples from an acquisition
    :type samples: list[Sample]
    :param expected_time: Time of the main input peak in seconds
    :type expected_time: float
    :param tolerance: Allowed distance from expected_time in seconds
    :type tolerance: float
    :return: True if the peak is visible
    :rtype: bool
    """
    if not samples:
        return False

    times, voltages = samples_to_arrays(samples)
    peak = np.argmax(voltages)
    if voltages[peak] <= 0 or abs(times[peak] - expected_time) > tolerance:
        return False

    outside = np.abs(times - expected_time) > tolerance
    return bool(np.all(voltages[outside] < voltages[peak]))


def print_summary(config, samples, errors, peak_found):
    """
    Print a formatted acquisition summary table.

    :param config: Acquisition parameters
    :type config: AcquisitionConfig
    :param samples: Samples from an acquisition
    :type samples: list[Sample]
    :param errors: Quantization error per sample in volts
    :type errors: np.ndarray
    :param peak_found: Result of assess_peak
    :type peak_found: bool
    """
    lsb = config.vref / ((1 << config.n_bits) - 1)
    errors = np.asarray(errors, dtype=float)
    if errors.size:
        rms = np.sqrt(np.mean(errors ** 2)) / lsb
        worst = np.max(np.abs(errors)) / lsb
    else:
        rms = worst = 0.0

    print("=" * 45)
    print("      SAR-ADC ACQUISITION SUMMARY")
    print("=" * 45)
    print(f"  Resolution    : {config.n_bits} bits")
    print(f"  Vref          : {config.vref * 1e3:.3f} mV")
    print(f"  LSB           : {lsb * 1e6:.3f} uV")
    print(f"  Interval      : {config.sample_interval * 1e3:.1f} ms")
    print(f"  Samples       : {len(samples)}")
    print(f"  Error (rms)   : {rms:.3f} LSB")
    print(f"  Error (peak)  : {worst:.3f} LSB")
    print(f"  Main peak     : {'identified' if peak_found else 'not identified'}")
    print("=" * 45)
