"""
events.py

Observation events emitted while the SAR-ADC runs, and a few sinks to
receive them.

A sink is any callable taking one event. Events are delivered in the exact
order the converter performs the corresponding steps, so a recorded stream is
a complete trace of the acquisition. Sinks only observe; nothing they do is
fed back into the conversion.
"""

import logging
from dataclasses import asdict, dataclass, fields

logger = logging.getLogger(__name__)


class Event:
    """Base class of all acquisition events."""

    def as_dict(self):
        """
        Structured form of the event, e.g. for sending to a display.

        :return: Dict with the event name under ``"event"`` and its fields
        :rtype: dict
        """
        return {"event": type(self).__name__, **asdict(self)}

    def __str__(self):
        values = ", ".join(f"{f.name}={getattr(self, f.name):g}"
                           if isinstance(getattr(self, f.name), float)
                           else f"{f.name}={getattr(self, f.name)}"
                           for f in fields(self))
        return f"{type(self).__name__}({values})"


@dataclass(frozen=True)
class BitSet(Event):
    """A trial bit was set; voltage is the ladder output with that bit."""
    index: int
    time: float
    voltage: float


@dataclass(frozen=True)
class BitCleared(Event):
    """A trial bit overshot the input and was cleared again."""
    index: int
    time: float
    voltage: float


@dataclass(frozen=True)
class AllBitsCleared(Event):
    """The register was reset before a conversion or at the end of a run."""
    time: float
    voltage: float


@dataclass(frozen=True)
class SampleSaved(Event):
    time: float
    voltage: float


@dataclass(frozen=True)
class Initialize(Event):
    resolution_bits: int
    reference_voltage: float


@dataclass(frozen=True)
class Finished(Event):
    pass


def null_sink(event):
    """Discard the event."""


class EventRecorder:
    """
    Sink keeping every event in a list.

    >>> recorder = EventRecorder()
    >>> recorder(Finished())
    >>> len(recorder)
    1
    """

    def __init__(self):
        self.events = []

    def __call__(self, event):
        self.events.append(event)

    def __len__(self):
        return len(self.events)

    def __iter__(self):
        return iter(self.events)

    def of_type(self, *event_types):
        return [e for e in self.events if isinstance(e, event_types)]

    def clear(self):
        self.events.clear()


class LoggingSink:
    """
    Sink writing one log record per event.

    :param log: Logger to write to, default is this module's logger
    :type log: logging.Logger
    :param level: Log level of the records, default DEBUG
    :type level: int
    """

    def __init__(self, log=None, level=logging.DEBUG):
        self.log = log if log is not None else logger
        self.level = level

    def __call__(self, event):
        self.log.log(self.level, "%s", event)


def fan_out(*sinks):
    """
    Combine several sinks into one; each event goes to every sink in order.

    :return: A sink forwarding to all given sinks
    :rtype: callable
    """
    def broadcast(event):
        for sink in sinks:
            sink(event)
    return broadcast
