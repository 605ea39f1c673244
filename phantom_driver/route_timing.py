"""
Route Timing Report

Playback steps through a route at its nominal time spacing, while recording
stores the spacing that actually passed between samples. This report measures
how far the two drift apart for a given route.
"""

from dataclasses import dataclass

import numpy as np

from .phantom_route import PhantomRoute


@dataclass
class TimingReport:
    """Recorded vs nominal timing for one route."""
    name: str
    sample_count: int
    time_spacing: int             # declared ms between samples
    mean_spacing: float = 0.0     # recorded ms between samples
    std_spacing: float = 0.0
    min_spacing: int = 0
    max_spacing: int = 0
    recorded_duration: int = 0    # ms, sum of recorded spacings
    nominal_duration: int = 0     # ms, sample_count * time_spacing

    @property
    def drift(self) -> int:
        """How much longer the recording took than playback will (ms)."""
        return self.recorded_duration - self.nominal_duration

    @property
    def timing_accuracy(self) -> float:
        """Percentage of the recorded duration that playback reproduces."""
        if self.recorded_duration == 0:
            return 100.0
        return 100.0 * (1 - abs(self.drift) / self.recorded_duration)

    def summary(self) -> str:
        return "\n".join([
            f'| "{self.name}" timing',
            f"|    Samples: {self.sample_count} at {self.time_spacing}ms nominal",
            f"|    Recorded spacing: mean {self.mean_spacing:.1f}ms, std {self.std_spacing:.1f}ms, "
            f"range {self.min_spacing}-{self.max_spacing}ms",
            f"|    Duration: recorded {self.recorded_duration}ms, playback {self.nominal_duration}ms "
            f"(drift {self.drift:+d}ms, accuracy {self.timing_accuracy:.1f}%)",
        ])


def build_timing_report(route: PhantomRoute) -> TimingReport:
    """
    Compute spacing statistics from analog channel 0 of a route.

    Args:
        route: Route to analyse

    Returns:
        TimingReport; all zeros for an empty route
    """
    spacing = np.array(route.analog_spacing(0), dtype=np.int64)
    report = TimingReport(name=route.name, sample_count=int(spacing.size), time_spacing=route.time_spacing)
    if spacing.size == 0:
        return report

    report.mean_spacing = float(spacing.mean())
    report.std_spacing = float(spacing.std())
    report.min_spacing = int(spacing.min())
    report.max_spacing = int(spacing.max())
    report.recorded_duration = int(spacing.sum())
    report.nominal_duration = int(spacing.size * route.time_spacing)
    return report
