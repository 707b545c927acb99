"""
demo.py

Demonstration script for the SAR-ADC acquisition model.
Samples a synthetic heartbeat-like signal, prints an acquisition summary and
plots the input, every DAC trial voltage and the saved samples.

Usage:
    python demo.py

Try fewer bits, a smaller vref or a longer interval and see whether the
main peak at about 0.25 s still shows up in the samples.
"""

import logging

import numpy as np
import matplotlib.pyplot as plt

from acquisition import AcquisitionConfig, AcquisitionLoop, samples_to_arrays
from characterize import assess_peak, compute_dnl_inl, print_summary, quantization_error
from events import BitCleared, BitSet, EventRecorder, LoggingSink, fan_out
from pacing import ExecutionMode, Pacer
from signals import PulseSignal

# ── Parameters ─────────────────────────────────────────────────────────────
N_BITS          = 8
VREF            = 0.02
SAMPLE_INTERVAL = 0.07
MODE            = ExecutionMode.RUN_FASTEST
LOG_LEVEL       = logging.INFO


def plot_acquisition(source, samples, recorder, config):
    t = np.linspace(0, source.horizon, 1000, endpoint=False)
    times, voltages = samples_to_arrays(samples)
    trials = recorder.of_type(BitSet, BitCleared)

    fig, axes = plt.subplots(2, 1, figsize=(12, 8), sharex=True)
    fig.suptitle(f"SAR-ADC: {config.n_bits}-bit, vref={config.vref * 1e3:.1f}mV, "
                 f"interval={config.sample_interval * 1e3:.0f}ms",
                 fontsize=13, fontweight='bold')

    ax0 = axes[0]
    ax0.plot(t, source.evaluate(t) * 1e3, color='#2196F3', linewidth=1.2, label='Input')
    ax0.step(times, voltages * 1e3, where='post', color='#FF5722',
             linewidth=1.5, label='Samples')
    ax0.plot(times, voltages * 1e3, 'o', color='#FF5722', markersize=4)
    ax0.set_ylabel("Voltage (mV)")
    ax0.legend()
    ax0.grid(True, alpha=0.3)

    # Every trial of the binary search, drawn at its sample time
    ax1 = axes[1]
    ax1.scatter([e.time for e in trials], [e.voltage * 1e3 for e in trials],
                c=['#4CAF50' if isinstance(e, BitSet) else '#9C27B0' for e in trials],
                s=10, alpha=0.6)
    ax1.axhline(config.vref * 1e3, color='gray', linestyle='--', linewidth=0.7)
    ax1.set_xlabel("Time (s)")
    ax1.set_ylabel("DAC output (mV)")
    ax1.set_title("DAC trials (green: bit set, purple: bit cleared)", fontsize=9)
    ax1.grid(True, alpha=0.3)

    plt.tight_layout()
    plt.savefig('sar_adc_acquisition.png', dpi=150, bbox_inches='tight')
    print("\nPlot saved: sar_adc_acquisition.png")
    plt.show()


def main():
    logging.basicConfig(level=LOG_LEVEL, format="%(levelname)s %(name)s: %(message)s")

    config = AcquisitionConfig(n_bits=N_BITS, vref=VREF, sample_interval=SAMPLE_INTERVAL)
    source = PulseSignal()
    recorder = EventRecorder()

    loop = AcquisitionLoop(config, source, sink=fan_out(recorder, LoggingSink()),
                           pacer=Pacer(MODE))
    samples = loop.run()

    errors = quantization_error(samples, source)
    peak_found = assess_peak(samples, expected_time=source.peak_time)
    print_summary(config, samples, errors, peak_found)

    if config.n_bits <= 12:
        dnl, inl = compute_dnl_inl(config.n_bits, config.vref)
        print(f"  DNL (peak)    : {np.max(np.abs(dnl)):.3f} LSB")
        print(f"  INL (peak)    : {np.max(np.abs(inl)):.3f} LSB")

    plot_acquisition(source, samples, recorder, config)


if __name__ == "__main__":
    main()
