"""
signals.py

Analog input sources for the acquisition loop.

A source is any object with ``next_value(time)`` returning the input voltage
at ``time``, or ``None`` once the signal has ended. Every source here covers
the window [0, horizon) and is exhausted from the horizon on.
"""

import math
import numbers

import numpy as np

from adc_core import ConfigurationError

DEFAULT_HORIZON = 0.7


def _validate_horizon(horizon):
    if isinstance(horizon, bool) or not isinstance(horizon, numbers.Real):
        raise ConfigurationError(f"Horizon must be a real number, got {horizon!r}")
    if not math.isfinite(horizon) or horizon < 0:
        raise ConfigurationError(f"Horizon must be zero or larger, got {horizon}")
    return float(horizon)


class FunctionSignal:
    """
    Source sampling a function of time.

    :param func: Function mapping time in seconds to a voltage
    :type func: callable
    :param horizon: End of the signal in seconds, default 0.7
    :type horizon: float
    """

    def __init__(self, func, horizon=DEFAULT_HORIZON):
        self.func = func
        self.horizon = _validate_horizon(horizon)

    def next_value(self, time):
        if time >= self.horizon:
            return None
        return float(self.func(time))


class PulseSignal(FunctionSignal):
    """
    Synthetic heartbeat-like waveform: a small bump, a dominant peak and a
    trailing wave, each modelled as a Gaussian.

    v(t) = A * sum_k w_k * exp(-(t - t_k)^2 / (2 * s_k^2))

    :param amplitude: Height of the dominant peak in volts, default 15 mV
    :type amplitude: float
    :param peak_time: Time of the dominant peak in seconds, default 0.25
    :type peak_time: float
    :param horizon: End of the signal in seconds, default 0.7
    :type horizon: float
    """

    # (offset from peak in s, relative height, width in s)
    COMPONENTS = [
        (-0.15, 0.15, 0.025),
        (0.0, 1.0, 0.012),
        (0.22, 0.3, 0.04),
    ]

    def __init__(self, amplitude=0.015, peak_time=0.25, horizon=DEFAULT_HORIZON):
        self.amplitude = amplitude
        self.peak_time = peak_time
        super().__init__(self.evaluate, horizon)

    def evaluate(self, t):
        """
        Waveform value at time t, also valid for arrays of times.

        :param t: Time in seconds
        :type t: float or np.ndarray
        :return: Voltage
        :rtype: float or np.ndarray
        """
        t = np.asarray(t, dtype=float)
        v = np.zeros(t.shape)
        for offset, weight, width in self.COMPONENTS:
            v += weight * np.exp(-(t - self.peak_time - offset) ** 2 / (2 * width ** 2))
        return np.maximum(self.amplitude * v, 0.0)


class ArraySignal:
    """
    Replays a recorded waveform, interpolating linearly between points.

    :param times: Increasing sample times in seconds
    :type times: array_like
    :param values: Voltages at those times
    :type values: array_like
    """

    def __init__(self, times, values):
        self.times = np.asarray(times, dtype=float)
        self.values = np.asarray(values, dtype=float)
        if self.times.ndim != 1 or self.times.shape != self.values.shape:
            raise ConfigurationError("times and values must be 1-D arrays of equal length")
        if self.times.size == 0:
            raise ConfigurationError("A recorded signal needs at least one point")
        if np.any(np.diff(self.times) <= 0):
            raise ConfigurationError("Sample times must be strictly increasing")

    @property
    def horizon(self):
        # Last recorded point is still part of the signal
        return float(np.nextafter(self.times[-1], np.inf))

    def next_value(self, time):
        if time >= self.horizon:
            return None
        return float(np.interp(time, self.times, self.values))
