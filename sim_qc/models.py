"""Data models for the sim-qc tool.

Cohort metadata from the .sim header, the channel number format, and the
per-sample metric results.
"""

from dataclasses import dataclass, field
from enum import Enum

import numpy as np


class NumberFormat(Enum):
    """Channel intensity representation, selected once per .sim file."""

    FLOAT = 0  # little-endian float32
    INTEGER = 1  # little-endian uint16

    @property
    def dtype(self) -> np.dtype:
        """numpy dtype of one stored intensity value."""
        if self is NumberFormat.FLOAT:
            return np.dtype("<f4")
        return np.dtype("<u2")

    @property
    def num_bytes(self) -> int:
        """Bytes per stored intensity value."""
        return self.dtype.itemsize


@dataclass(frozen=True, slots=True)
class SimHeader:
    """Cohort metadata read from a .sim file header.

    Attributes:
        version: File format version
        sample_name_size: Bytes reserved for each sample name (maximum name length)
        num_samples: Number of sample records in the file
        num_probes: Number of probes per sample
        num_channels: Number of intensity channels per probe
        number_format: Representation of the stored intensities
    """

    version: int
    sample_name_size: int
    num_samples: int
    num_probes: int
    num_channels: int
    number_format: NumberFormat

    @property
    def values_per_record(self) -> int:
        """Number of intensity values in one sample record."""
        return self.num_probes * self.num_channels

    @property
    def record_size(self) -> int:
        """Size in bytes of one sample record (name plus intensities)."""
        return self.sample_name_size + self.values_per_record * self.number_format.num_bytes


@dataclass
class SampleMetrics:
    """One QC scalar per sample, aligned with sample names in file order.

    Attributes:
        metric: Metric name ("magnitude" or "xydiff")
        names: Sample names in cohort order
        values: float64 array with one value per sample
    """

    metric: str
    names: list[str] = field(default_factory=list)
    values: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.float64))

    def __len__(self) -> int:
        return len(self.names)

    def rows(self) -> list[tuple[str, float]]:
        """(name, value) pairs in cohort order."""
        return [(name, float(value)) for name, value in zip(self.names, self.values)]
