"""Streaming QC metric aggregation over a record source.

Normalized magnitude is a two-pass computation:

1. ``mean_magnitude_by_probe`` reads every sample and averages each probe's
   magnitude across the cohort, giving the reference vector.
2. ``magnitude_by_sample`` reads every sample again and averages, over
   probes, the sample's magnitude divided by the probe's reference.

The second read keeps memory at O(num_probes) per pass instead of holding
every sample's magnitudes. ``xydiff_by_sample`` is a single independent
pass for two-channel cohorts.

Each pass reads exactly ``num_samples`` records from a source positioned at
its first record; callers reset the source between passes.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

import numpy as np

from sim_qc.errors import (
    DegenerateCohortError,
    UnsupportedChannelCountError,
    ZeroReferenceMagnitudeError,
)
from sim_qc.models import SampleMetrics
from sim_qc.parsers.base import RecordSource

logger = logging.getLogger(__name__)

DEFAULT_PROGRESS_INTERVAL = 100
DEFAULT_TIME_FORMAT = "%d-%m-%Y_%H:%M:%S"


@dataclass
class ProgressReporter:
    """Periodic per-sample progress notifications.

    Emits ``"<timestamp> Sample i of n"`` at INFO level for every
    ``interval``-th sample, starting with the first. Observability only;
    never affects results.

    Attributes:
        interval: Report every this many samples
        time_format: strftime format for the timestamp
        logger: Logger the notifications are emitted on
        on_start: Called with (description, total) when a pass begins
        on_advance: Called once per processed sample
    """

    interval: int = DEFAULT_PROGRESS_INTERVAL
    time_format: str = DEFAULT_TIME_FORMAT
    logger: logging.Logger = field(default=logger)
    on_start: Callable[[str, int], None] | None = None
    on_advance: Callable[[], None] | None = None

    def start(self, description: str, total: int) -> None:
        """Announce a pass over ``total`` samples."""
        if self.on_start is not None:
            self.on_start(description, total)

    def update(self, index: int, total: int) -> None:
        """Report progress after processing the sample at ``index`` (0-based)."""
        if self.on_advance is not None:
            self.on_advance()
        if self.interval > 0 and index % self.interval == 0:
            stamp = datetime.now().strftime(self.time_format)
            self.logger.info(f"{stamp} Sample {index + 1} of {total}")


def _check_cohort(source: RecordSource) -> None:
    if source.num_samples == 0:
        raise DegenerateCohortError("Cohort has no samples; mean is undefined")
    if source.num_probes == 0:
        raise DegenerateCohortError("Cohort has no probes; mean is undefined")


def probe_magnitudes(intensities: np.ndarray, num_channels: int) -> np.ndarray:
    """Compute the Euclidean magnitude of each probe in one sample.

    ``magnitude[p] = sqrt(sum_c intensity[p * num_channels + c] ** 2)``

    Intensities are converted to float64 before squaring, so integer
    inputs never overflow.

    Args:
        intensities: Flat intensity array of length num_probes * num_channels
        num_channels: Number of channels per probe (>= 1)

    Returns:
        float64 array with one magnitude per probe

    Raises:
        ValueError: If num_channels < 1 or the array length is not a
            multiple of num_channels
    """
    if num_channels < 1:
        raise ValueError(f"num_channels must be at least 1, got {num_channels}")
    values = np.asarray(intensities, dtype=np.float64)
    if values.size % num_channels != 0:
        raise ValueError(
            f"Intensity count {values.size} is not a multiple of "
            f"{num_channels} channels"
        )
    by_probe = values.reshape(-1, num_channels)
    return np.sqrt(np.sum(by_probe * by_probe, axis=1))


def mean_magnitude_by_probe(
    source: RecordSource,
    progress: ProgressReporter | None = None,
) -> np.ndarray:
    """Average each probe's magnitude over all samples (pass 1).

    Args:
        source: Record source positioned at its first record
        progress: Optional progress reporter

    Returns:
        float64 reference vector of length num_probes

    Raises:
        DegenerateCohortError: If the cohort has no samples or probes
    """
    _check_cohort(source)
    num_samples = source.num_samples
    logger.info("Finding mean magnitude by probe")
    if progress is not None:
        progress.start("Mean magnitude by probe", num_samples)

    totals = np.zeros(source.num_probes, dtype=np.float64)
    for i in range(num_samples):
        _, intensities = source.next_record()
        totals += probe_magnitudes(intensities, source.num_channels)
        if progress is not None:
            progress.update(i, num_samples)

    logger.info("Completed mean magnitude by probe")
    return totals / num_samples


def check_reference(reference: np.ndarray) -> None:
    """Ensure every reference magnitude is a usable divisor.

    Raises:
        ZeroReferenceMagnitudeError: If any entry is zero, negative or
            not finite
    """
    bad = np.flatnonzero(~(np.isfinite(reference) & (reference > 0)))
    if bad.size:
        raise ZeroReferenceMagnitudeError([int(p) for p in bad])


def magnitude_by_sample(
    source: RecordSource,
    reference: np.ndarray,
    progress: ProgressReporter | None = None,
) -> SampleMetrics:
    """Compute each sample's probe-normalized mean magnitude (pass 2).

    Args:
        source: Record source positioned at its first record
        reference: Complete reference vector from ``mean_magnitude_by_probe``
        progress: Optional progress reporter

    Returns:
        SampleMetrics with one normalized magnitude per sample

    Raises:
        DegenerateCohortError: If the cohort has no samples or probes
        ValueError: If the reference length does not match num_probes
        ZeroReferenceMagnitudeError: If any reference entry is not positive
    """
    _check_cohort(source)
    reference = np.asarray(reference, dtype=np.float64)
    if reference.shape != (source.num_probes,):
        raise ValueError(
            f"Reference vector has shape {reference.shape}, "
            f"expected ({source.num_probes},)"
        )
    check_reference(reference)

    num_samples = source.num_samples
    logger.info("Finding normalized mean magnitude by sample")
    if progress is not None:
        progress.start("Normalized magnitude by sample", num_samples)

    names: list[str] = []
    values = np.zeros(num_samples, dtype=np.float64)
    for i in range(num_samples):
        name, intensities = source.next_record()
        names.append(name)
        magnitudes = probe_magnitudes(intensities, source.num_channels)
        values[i] = np.mean(magnitudes / reference)
        if progress is not None:
            progress.update(i, num_samples)

    logger.info("Completed mean magnitude by sample")
    return SampleMetrics(metric="magnitude", names=names, values=values)


def check_xydiff_supported(source: RecordSource) -> None:
    """Ensure XY intensity difference is defined for this cohort.

    Raises:
        UnsupportedChannelCountError: If the cohort does not have exactly
            two channels
        DegenerateCohortError: If the cohort has no samples or probes
    """
    if source.num_channels != 2:
        raise UnsupportedChannelCountError(
            "XY intensity difference is only defined for exactly two intensity "
            f"channels (file has {source.num_channels})"
        )
    _check_cohort(source)


def xydiff_by_sample(
    source: RecordSource,
    progress: ProgressReporter | None = None,
) -> SampleMetrics:
    """Compute each sample's mean (channel 2 - channel 1) over probes.

    Args:
        source: Two-channel record source positioned at its first record
        progress: Optional progress reporter

    Returns:
        SampleMetrics with one XY intensity difference per sample

    Raises:
        UnsupportedChannelCountError: If the cohort is not two-channel
        DegenerateCohortError: If the cohort has no samples or probes
    """
    check_xydiff_supported(source)

    num_samples = source.num_samples
    logger.info("Computing XY intensity difference")
    if progress is not None:
        progress.start("XY intensity difference", num_samples)

    names: list[str] = []
    values = np.zeros(num_samples, dtype=np.float64)
    for i in range(num_samples):
        name, intensities = source.next_record()
        names.append(name)
        xy = np.asarray(intensities, dtype=np.float64).reshape(-1, 2)
        values[i] = np.mean(xy[:, 1] - xy[:, 0])
        if progress is not None:
            progress.update(i, num_samples)

    logger.info("Completed XY intensity difference")
    return SampleMetrics(metric="xydiff", names=names, values=values)
