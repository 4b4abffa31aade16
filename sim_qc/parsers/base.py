"""Abstract base class for sample record sources.

Defines the sequential, resettable interface the QC passes read from.
"""

from abc import ABC, abstractmethod
from types import TracebackType

import numpy as np

from sim_qc.models import NumberFormat, SimHeader


class RecordSource(ABC):
    """Sequential reader yielding one sample record per call.

    A source is positioned at its first record after opening. Each QC pass
    reads exactly ``num_samples`` records and callers must ``reset()``
    before starting another pass.

    Subclasses implement ``header``, ``reset``, ``next_record`` and ``close``.
    """

    @property
    @abstractmethod
    def header(self) -> SimHeader:
        """Cohort metadata for this source."""

    @abstractmethod
    def reset(self) -> None:
        """Rewind the read cursor to the first record.

        Idempotent and callable any number of times.
        """

    @abstractmethod
    def next_record(self) -> tuple[str, np.ndarray]:
        """Read the record at the cursor and advance by one.

        Returns:
            Tuple of (sample name, flat intensity array). The array has
            ``num_probes * num_channels`` values indexed
            ``probe * num_channels + channel`` in the dtype of
            ``number_format``.

        Raises:
            EndOfCohortError: If called past the last record
        """

    @abstractmethod
    def close(self) -> None:
        """Release any underlying resources."""

    @property
    def num_samples(self) -> int:
        return self.header.num_samples

    @property
    def num_probes(self) -> int:
        return self.header.num_probes

    @property
    def num_channels(self) -> int:
        return self.header.num_channels

    @property
    def number_format(self) -> NumberFormat:
        return self.header.number_format

    def __enter__(self) -> "RecordSource":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
