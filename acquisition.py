"""
acquisition.py

Repeated SAR conversions over time.

The loop samples the input at a fixed interval. Before each conversion the
DAC register is cleared, the converter resolves the new code, and the result
is saved as a Sample. Once the source runs out of signal the register is
cleared a last time and a Finished event closes the event stream.
"""

import enum
import logging
import threading
from dataclasses import dataclass

import numpy as np

from adc_core import (ResistorLadderDAC, SARConverter, validate_n_bits,
                      validate_positive)
from events import (AllBitsCleared, Finished, Initialize, SampleSaved,
                    null_sink)
from pacing import NO_PACING

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AcquisitionConfig:
    """
    Acquisition parameters, validated on creation.

    :param n_bits: ADC resolution, 2 to 64 bits, default 8
    :type n_bits: int
    :param vref: Reference voltage in volts, default 20 mV
    :type vref: float
    :param sample_interval: Time between conversions in seconds, default 70 ms
    :type sample_interval: float
    :raises ConfigurationError: if any parameter is out of range
    """
    n_bits: int = 8
    vref: float = 0.02
    sample_interval: float = 0.07

    def __post_init__(self):
        # frozen, so assign through object
        object.__setattr__(self, "n_bits", validate_n_bits(self.n_bits))
        object.__setattr__(self, "vref", validate_positive("Reference voltage", self.vref))
        object.__setattr__(self, "sample_interval",
                           validate_positive("Sample interval", self.sample_interval))


@dataclass(frozen=True)
class Sample:
    time: float
    voltage: float


class AcquisitionState(enum.Enum):
    SAMPLING = "sampling"
    FINISHED = "finished"


class AcquisitionLoop:
    """
    Drives the SAR converter across time until the signal source is exhausted.

    :param config: Acquisition parameters
    :type config: AcquisitionConfig
    :param source: Object with next_value(time) returning a voltage or None
    :type source: signals.FunctionSignal or compatible
    :param sink: Callable receiving each event, default discards them
    :type sink: callable
    :param pacer: Pacing strategy, default does not pause
    :type pacer: pacing.Pacer
    """

    def __init__(self, config, source, sink=None, pacer=None):
        self.config = config
        self.source = source
        self.sink = sink if sink is not None else null_sink
        self.pacer = pacer if pacer is not None else NO_PACING

        self.dac = ResistorLadderDAC(config.n_bits, config.vref)
        self.converter = SARConverter(self.dac, self.sink, self.pacer)

        self.current_time = 0.0
        self.samples = []
        self.codes = []
        self.state = AcquisitionState.SAMPLING
        self._started = False
        self._stop_requested = threading.Event()

    def stop(self):
        """Request the loop to finish at the next cycle boundary. Safe to call from any thread."""
        self._stop_requested.set()

    def _clear_all_bits(self):
        self.dac.clear_all_bits()
        interval = self.config.sample_interval
        voltage = self.dac.output_voltage

        if self.current_time >= interval:
            # Two points so the display shows the drop over the previous interval
            self.sink(AllBitsCleared(self.current_time - interval, voltage))
            self.pacer.pause_decay()
            self.sink(AllBitsCleared(self.current_time, voltage))
        else:
            self.sink(AllBitsCleared(self.current_time, voltage))
            self.pacer.pause()

    def _save_sample(self, conversion):
        sample = Sample(self.current_time, conversion.voltage)
        self.samples.append(sample)
        self.codes.append(conversion.code)
        self.pacer.pause()
        self.sink(SampleSaved(sample.time, sample.voltage))
        logger.debug("Sample %d: t=%.4g s, code=%d, v=%.6g V",
                     len(self.samples), sample.time, conversion.code, sample.voltage)

    def step(self):
        """
        Run one cycle: fetch the next input and convert it.

        The first call announces the resolution and reference voltage with an
        Initialize event, so a host may drive the loop cycle by cycle.

        :return: True if a sample was taken, False once the loop is finished
        :rtype: bool
        """
        if self.state is AcquisitionState.FINISHED:
            return False
        if not self._started:
            self._start()

        v_in = None
        if not self._stop_requested.is_set():
            v_in = self.source.next_value(self.current_time)
        else:
            logger.info("Stop requested, finishing at t=%.4g s", self.current_time)

        if v_in is None:
            self._finish()
            return False

        self._clear_all_bits()
        conversion = self.converter.convert(v_in, self.current_time)
        self._save_sample(conversion)
        self.current_time += self.config.sample_interval
        return True

    def _start(self):
        self._started = True
        logger.info("Starting acquisition: %d bits, vref=%g V, interval=%g s",
                    self.config.n_bits, self.config.vref, self.config.sample_interval)
        self.sink(Initialize(self.config.n_bits, self.config.vref))

    def _finish(self):
        self._clear_all_bits()
        self.state = AcquisitionState.FINISHED
        self.sink(Finished())
        logger.info("Acquisition finished with %d samples", len(self.samples))

    def run(self):
        """
        Sample until the source is exhausted or a stop is requested.

        :return: Collected samples in time order
        :rtype: list[Sample]
        :raises RuntimeError: if the loop has already been started
        """
        if self._started:
            raise RuntimeError("An acquisition loop can only be run once")

        while self.step():
            pass
        return self.samples


def acquire(config, source, sink=None, pacer=None):
    """
    Run a complete acquisition.

    :return: Collected samples in time order
    :rtype: list[Sample]
    """
    return AcquisitionLoop(config, source, sink, pacer).run()


def samples_to_arrays(samples):
    """
    Split samples into time and voltage arrays.

    :param samples: Samples from an acquisition
    :type samples: list[Sample]
    :return: Tuple of (times, voltages)
    :rtype: tuple(np.ndarray, np.ndarray)
    """
    times = np.array([s.time for s in samples], dtype=float)
    voltages = np.array([s.voltage for s in samples], dtype=float)
    return times, voltages
