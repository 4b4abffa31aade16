"""QC metric computation against an open record source.

``SimQC`` sequences the passes for each metric. Magnitude and xydiff share
no state and can be run independently, in either order, any number of
times on the same source.
"""

import logging
from pathlib import Path

import numpy as np

from sim_qc.metrics import (
    ProgressReporter,
    check_xydiff_supported,
    magnitude_by_sample,
    mean_magnitude_by_probe,
    xydiff_by_sample,
)
from sim_qc.models import SampleMetrics
from sim_qc.parsers.base import RecordSource
from sim_qc.writers.results import write_results

logger = logging.getLogger(__name__)


class SimQC:
    """Computes QC metrics for every sample in a record source.

    Usage:
        with SimReader.open(path) as reader:
            qc = SimQC(reader, ProgressReporter(interval=100))
            qc.write_magnitude(Path("magnitude.txt"))
            qc.write_xydiff(Path("xydiff.txt"))
    """

    def __init__(
        self,
        source: RecordSource,
        progress: ProgressReporter | None = None,
    ) -> None:
        """Initialize with an open source.

        Args:
            source: Open record source
            progress: Optional progress reporter passed to every pass
        """
        self.source = source
        self.progress = progress

    def reference_magnitudes(self) -> np.ndarray:
        """Reset the source and compute the per-probe reference vector."""
        self.source.reset()
        return mean_magnitude_by_probe(self.source, self.progress)

    def magnitude(self) -> SampleMetrics:
        """Compute probe-normalized magnitude for every sample.

        Runs pass 1 to completion, resets, then runs pass 2 with the full
        reference vector.
        """
        reference = self.reference_magnitudes()
        self.source.reset()
        return magnitude_by_sample(self.source, reference, self.progress)

    def xydiff(self) -> SampleMetrics:
        """Compute XY intensity difference for every sample."""
        check_xydiff_supported(self.source)
        self.source.reset()
        return xydiff_by_sample(self.source, self.progress)

    def write_magnitude(self, output_path: Path) -> Path:
        """Compute normalized magnitudes and write them to ``output_path``."""
        results = self.magnitude()
        logger.info(f"Writing magnitude results to {output_path}")
        return write_results(results, output_path)

    def write_xydiff(self, output_path: Path) -> Path:
        """Compute XY intensity differences and write them to ``output_path``.

        Raises:
            UnsupportedChannelCountError: Before any output is written, if
                the source is not two-channel
        """
        results = self.xydiff()
        logger.info(f"Writing xydiff results to {output_path}")
        return write_results(results, output_path)
