"""SIM binary intensity file reader.

Implements sequential record reading over a .sim file. Supports gzipped
files.

SIM file layout (all integers little-endian):

    header (16 bytes)
        magic             3 bytes  "sim"
        version           uint8    1
        sample_name_size  uint16
        num_samples       uint32
        num_probes        uint32
        num_channels      uint8
        number_format     uint8    0 = float32, 1 = uint16

    num_samples records, each
        sample name       sample_name_size bytes, NUL padded
        intensities       num_probes * num_channels values
"""

import logging
import struct
from pathlib import Path
from typing import IO

import numpy as np

from sim_qc.errors import (
    EndOfCohortError,
    MalformedRecordError,
    SourceOpenError,
    TruncatedRecordError,
)
from sim_qc.io_utils import is_compressed, open_binary, smart_open
from sim_qc.models import NumberFormat, SimHeader
from sim_qc.parsers.base import RecordSource

logger = logging.getLogger(__name__)

SIM_MAGIC = b"sim"
SIM_VERSION = 1
HEADER_STRUCT = struct.Struct("<3sBHIIBB")
HEADER_SIZE = HEADER_STRUCT.size  # 16

# Characters that would break the name<TAB>value results format
FORBIDDEN_NAME_CHARS = frozenset("\t\n\r")


def parse_header(data: bytes, source_name: str = "<bytes>") -> SimHeader:
    """Decode and validate a .sim header.

    Args:
        data: At least HEADER_SIZE bytes from the start of the file
        source_name: Name used in error messages

    Returns:
        SimHeader with the cohort metadata

    Raises:
        SourceOpenError: If the header is short, has the wrong magic,
            an unsupported version or number format, or zero channels
    """
    if len(data) < HEADER_SIZE:
        raise SourceOpenError(
            f"{source_name}: file too short for a .sim header "
            f"({len(data)} of {HEADER_SIZE} bytes)"
        )

    magic, version, name_size, num_samples, num_probes, num_channels, fmt_code = (
        HEADER_STRUCT.unpack(data[:HEADER_SIZE])
    )

    if magic != SIM_MAGIC:
        raise SourceOpenError(f"{source_name}: not a .sim file (magic {magic!r})")
    if version != SIM_VERSION:
        raise SourceOpenError(
            f"{source_name}: unsupported .sim version {version} (expected {SIM_VERSION})"
        )
    try:
        number_format = NumberFormat(fmt_code)
    except ValueError:
        raise SourceOpenError(
            f"{source_name}: unsupported number format code {fmt_code}"
        ) from None
    if num_channels == 0:
        raise SourceOpenError(f"{source_name}: header declares zero intensity channels")

    return SimHeader(
        version=version,
        sample_name_size=name_size,
        num_samples=num_samples,
        num_probes=num_probes,
        num_channels=num_channels,
        number_format=number_format,
    )


def read_header(filepath: Path) -> SimHeader:
    """Read the header of a .sim file without opening a reader.

    Args:
        filepath: Path to .sim file (may be gzipped)

    Returns:
        SimHeader with the cohort metadata

    Raises:
        SourceOpenError: If the file is missing or the header is invalid
    """
    try:
        with smart_open(filepath) as f:
            data = f.read(HEADER_SIZE)
    except OSError as e:
        raise SourceOpenError(f"Cannot open .sim file {filepath}: {e}") from e
    return parse_header(data, str(filepath))


def decode_sample_name(raw: bytes) -> str:
    """Decode a NUL-padded sample name field.

    Raises:
        MalformedRecordError: If the name contains a tab or line break
    """
    name = raw.split(b"\x00", 1)[0].decode("utf-8", errors="replace")
    if not FORBIDDEN_NAME_CHARS.isdisjoint(name):
        raise MalformedRecordError(
            f"Sample name {name!r} contains a tab or line break"
        )
    return name


class SimReader(RecordSource):
    """Sequential reader over the sample records of a .sim file.

    Usage:
        with SimReader.open(Path("cohort.sim")) as reader:
            for _ in range(reader.num_samples):
                name, intensities = reader.next_record()

    ``reset()`` is a single seek. For plain files that is O(1); for
    gzipped files the decompressor rewinds and re-decodes, which costs one
    sequential read of the data skipped over.
    """

    def __init__(self, handle: IO[bytes], header: SimHeader, path: Path | None = None) -> None:
        """Wrap an open handle positioned just after the header.

        Args:
            handle: Binary file handle
            header: Parsed header of the file
            path: Path of the file, for messages
        """
        self._handle = handle
        self._header = header
        self.path = path
        self._cursor = 0

    @classmethod
    def open(cls, filepath: Path) -> "SimReader":
        """Open a .sim file and validate its header.

        Args:
            filepath: Path to .sim file (may be gzipped)

        Returns:
            SimReader positioned at the first record

        Raises:
            SourceOpenError: If the file cannot be opened, the header is
                invalid, or an uncompressed file's size disagrees with the
                header
        """
        filepath = Path(filepath)
        try:
            handle = open_binary(filepath)
        except OSError as e:
            raise SourceOpenError(f"Cannot open .sim file {filepath}: {e}") from e

        try:
            header = parse_header(handle.read(HEADER_SIZE), str(filepath))
            if not is_compressed(handle):
                expected = HEADER_SIZE + header.num_samples * header.record_size
                actual = filepath.stat().st_size
                if actual != expected:
                    raise SourceOpenError(
                        f"{filepath}: file size {actual} does not match header "
                        f"(expected {expected} bytes for {header.num_samples} samples)"
                    )
        except (OSError, EOFError) as e:
            handle.close()
            raise SourceOpenError(f"Cannot read .sim header from {filepath}: {e}") from e
        except SourceOpenError:
            handle.close()
            raise

        logger.info(
            f"Opened .sim file {filepath}: {header.num_samples:,} samples, "
            f"{header.num_probes:,} probes, {header.num_channels} channel(s), "
            f"{header.number_format.name.lower()} intensities"
        )
        return cls(handle, header, filepath)

    @property
    def header(self) -> SimHeader:
        return self._header

    @property
    def position(self) -> int:
        """Index of the record the next ``next_record()`` call returns."""
        return self._cursor

    def reset(self) -> None:
        self._handle.seek(HEADER_SIZE)
        self._cursor = 0

    def next_record(self) -> tuple[str, np.ndarray]:
        header = self._header
        if self._cursor >= header.num_samples:
            raise EndOfCohortError(
                f"No record after sample {self._cursor} of {header.num_samples}"
            )

        try:
            data = self._handle.read(header.record_size)
        except EOFError as e:
            # gzip stream ended mid-record
            raise TruncatedRecordError(f"Record {self._cursor + 1} is truncated: {e}") from e
        if len(data) != header.record_size:
            raise TruncatedRecordError(
                f"Record {self._cursor + 1} is truncated: read {len(data)} of "
                f"{header.record_size} bytes"
            )

        try:
            name = decode_sample_name(data[: header.sample_name_size])
        except MalformedRecordError as e:
            raise MalformedRecordError(f"Record {self._cursor + 1}: {e}") from e
        intensities = np.frombuffer(
            data,
            dtype=header.number_format.dtype,
            count=header.values_per_record,
            offset=header.sample_name_size,
        )
        self._cursor += 1
        if self._cursor == header.num_samples and is_compressed(self._handle):
            self._check_no_trailing_data()
        return name, intensities

    def _check_no_trailing_data(self) -> None:
        # Plain files are size-checked at open; gzip content only here
        try:
            extra = self._handle.read(1)
        except EOFError as e:
            raise TruncatedRecordError(
                f"{self.path}: compressed stream ends without its trailer: {e}"
            ) from e
        if extra:
            raise MalformedRecordError(
                f"{self.path}: data continues after the {self._header.num_samples} "
                f"samples declared in the header"
            )

    def close(self) -> None:
        self._handle.close()
