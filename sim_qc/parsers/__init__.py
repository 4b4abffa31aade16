"""Record sources for .sim intensity files."""

from sim_qc.parsers.base import RecordSource
from sim_qc.parsers.sim import HEADER_SIZE, SimReader, parse_header, read_header

__all__ = [
    "RecordSource",
    "SimReader",
    "HEADER_SIZE",
    "parse_header",
    "read_header",
]
