"""Exceptions raised while reading .sim files and computing QC metrics."""


class SimQCError(Exception):
    """Base exception for all sim-qc errors."""
    pass


class SourceOpenError(SimQCError):
    """Raised when a .sim file cannot be opened or its header is invalid."""
    pass


class EndOfCohortError(SimQCError):
    """Raised when a record is requested past the last sample."""
    pass


class TruncatedRecordError(SimQCError):
    """Raised when a record is shorter than the header says it should be."""
    pass


class UnsupportedChannelCountError(SimQCError):
    """Raised when a metric needs a channel count the cohort does not have."""
    pass


class DegenerateCohortError(SimQCError):
    """Raised when the cohort has no samples or no probes."""
    pass


class ZeroReferenceMagnitudeError(SimQCError):
    """Raised when a probe's reference magnitude cannot be used as a divisor.

    Attributes:
        probes: Indices of the offending probes
    """

    def __init__(self, probes: list[int]) -> None:
        self.probes = probes
        shown = ", ".join(str(p) for p in probes[:10])
        if len(probes) > 10:
            shown += ", ..."
        super().__init__(
            f"{len(probes)} probe(s) have a zero or non-finite reference "
            f"magnitude (probe indices: {shown})"
        )


class OutputWriteError(SimQCError):
    """Raised when a results file cannot be written."""
    pass


class MalformedRecordError(SimQCError):
    """Raised when record content disagrees with the header or output format."""
    pass
