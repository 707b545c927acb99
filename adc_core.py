"""
adc_core.py

Behavioral model of an N-bit Successive Approximation Register ADC (SAR-ADC)
built around an R-2R resistor-ladder DAC.

The DAC holds a bit register and produces a voltage from it. The converter
drives that register through a binary search, one bit at a time from MSB to
LSB, and reports every switch to an event sink so the conversion can be
watched step by step.
"""

import logging
import math
import numbers
from dataclasses import dataclass

from events import BitCleared, BitSet, null_sink
from pacing import NO_PACING

logger = logging.getLogger(__name__)

MIN_BITS = 2
MAX_BITS = 64


class ConfigurationError(ValueError):
    """Raised when a resolution, reference voltage or sample interval is invalid."""


class PreconditionViolation(Exception):
    """Raised when a bit index outside the register is used."""


def validate_n_bits(n_bits):
    if isinstance(n_bits, bool) or not isinstance(n_bits, numbers.Integral):
        raise ConfigurationError(f"Resolution must be an integer, got {n_bits!r}")
    if not MIN_BITS <= n_bits <= MAX_BITS:
        raise ConfigurationError(
            f"Resolution must be between {MIN_BITS} and {MAX_BITS} bits, got {n_bits}")
    return int(n_bits)


def validate_positive(name, value):
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ConfigurationError(f"{name} must be a real number, got {value!r}")
    if not math.isfinite(value) or value <= 0:
        raise ConfigurationError(f"{name} must be larger than zero, got {value}")
    return float(value)


class ResistorLadderDAC:
    """
    N-bit resistor-ladder DAC.

    The output is full scale when all bits are set:
    v_out = vref * register / (2^n_bits - 1)

    :param n_bits: DAC resolution, 2 to 64 bits
    :type n_bits: int
    :param vref: Reference (full-scale) voltage in volts, must be positive
    :type vref: float
    :raises ConfigurationError: if either parameter is out of range
    """

    def __init__(self, n_bits=8, vref=1.0):
        self.n_bits = validate_n_bits(n_bits)
        self.vref = validate_positive("Reference voltage", vref)
        self.full_scale_code = (1 << self.n_bits) - 1
        self.register = 0

    @property
    def lsb(self):
        """Quantization step, the voltage of a single LSB."""
        return self.vref / self.full_scale_code

    @property
    def output_voltage(self):
        # Dividing first keeps the all-bits-set output exactly at vref
        return self.vref * (self.register / self.full_scale_code)

    def _check_index(self, index):
        if isinstance(index, bool) or not isinstance(index, numbers.Integral):
            raise PreconditionViolation(f"Bit index must be an integer, got {index!r}")
        if not 0 <= index < self.n_bits:
            raise PreconditionViolation(
                f"Bit index {index} outside of a {self.n_bits}-bit register")

    def set_bit(self, index):
        """
        Set one bit of the register (0 is the LSB).

        :param index: Bit position
        :type index: int
        :raises PreconditionViolation: if the index is outside the register
        """
        self._check_index(index)
        self.register |= 1 << index

    def clear_bit(self, index):
        """
        Clear one bit of the register (0 is the LSB).

        :param index: Bit position
        :type index: int
        :raises PreconditionViolation: if the index is outside the register
        """
        self._check_index(index)
        self.register &= ~(1 << index)

    def clear_all_bits(self):
        self.register = 0

    def is_bit_set(self, index):
        self._check_index(index)
        return bool((self.register >> index) & 1)

    def __repr__(self):
        return (f"ResistorLadderDAC(n_bits={self.n_bits}, vref={self.vref}, "
                f"register={self.register:#0{self.n_bits + 2}b})")


@dataclass(frozen=True)
class Conversion:
    """Result of one conversion cycle: final register value and DAC voltage."""
    code: int
    voltage: float


class SARConverter:
    """
    SAR logic driving a resistor-ladder DAC.

    Every trial bit and every rejected bit is reported to ``sink`` and
    followed by a pacing pause. Neither affects the comparator decisions.

    :param dac: DAC whose register is resolved by the binary search
    :type dac: ResistorLadderDAC
    :param sink: Callable receiving each event, default discards them
    :type sink: callable
    :param pacer: Pacing strategy, default does not pause
    :type pacer: pacing.Pacer
    """

    def __init__(self, dac, sink=None, pacer=None):
        self.dac = dac
        self.sink = sink if sink is not None else null_sink
        self.pacer = pacer if pacer is not None else NO_PACING

    def convert(self, v_in, time=0.0):
        """
        Convert a single input voltage using the SAR algorithm.

        The DAC register must be cleared by the caller beforehand.
        - Set the next bit, starting at the MSB
        - Compare the ladder output to the input
        - Clear the bit again if the ladder output is above the input
        - Move to the next bit

        An input exactly equal to the ladder output keeps the bit.

        :param v_in: Input voltage in volts
        :type v_in: float
        :param time: Acquisition time reported with each event
        :type time: float
        :return: Final code and the matching DAC voltage
        :rtype: Conversion
        """
        dac = self.dac

        for bit in range(dac.n_bits - 1, -1, -1):
            dac.set_bit(bit)
            self.sink(BitSet(bit, time, dac.output_voltage))
            self.pacer.pause()

            # Comparator decision
            if v_in < dac.output_voltage:
                dac.clear_bit(bit)
                self.sink(BitCleared(bit, time, dac.output_voltage))
                self.pacer.pause()

        logger.debug("Converted %.6g V at t=%.4g to code %d", v_in, time, dac.register)
        return Conversion(dac.register, dac.output_voltage)


def convert_value(v_in, n_bits=8, vref=1.0):
    """
    Convert one voltage with a fresh DAC and no observers.

    :param v_in: Input voltage in volts
    :type v_in: float
    :param n_bits: ADC resolution
    :type n_bits: int
    :param vref: Reference voltage in volts
    :type vref: float
    :return: Final code and voltage
    :rtype: Conversion
    """
    return SARConverter(ResistorLadderDAC(n_bits, vref)).convert(v_in)
