"""Pytest fixtures for sim_qc tests."""

import gzip
import struct
from collections.abc import Callable, Sequence
from pathlib import Path

import numpy as np
import pytest

from sim_qc.logging_config import reset_logging
from sim_qc.models import NumberFormat

Sample = tuple[str, Sequence[Sequence[float]]]


def encode_sim(
    samples: Sequence[Sample],
    number_format: NumberFormat = NumberFormat.FLOAT,
    name_size: int = 16,
    num_probes: int | None = None,
    num_channels: int | None = None,
    header_samples: int | None = None,
    version: int = 1,
    magic: bytes = b"sim",
    format_code: int | None = None,
) -> bytes:
    """Build .sim file contents from per-sample probe intensity tuples."""
    if samples:
        num_probes = len(samples[0][1]) if num_probes is None else num_probes
        num_channels = len(samples[0][1][0]) if num_channels is None else num_channels
    num_probes = num_probes or 0
    num_channels = 2 if num_channels is None else num_channels

    data = struct.pack(
        "<3sBHIIBB",
        magic,
        version,
        name_size,
        len(samples) if header_samples is None else header_samples,
        num_probes,
        num_channels,
        number_format.value if format_code is None else format_code,
    )
    for name, probes in samples:
        data += name.encode("utf-8").ljust(name_size, b"\x00")
        values = np.asarray(probes, dtype=np.float64).reshape(-1)
        data += values.astype(number_format.dtype).tobytes()
    return data


@pytest.fixture
def make_sim(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing a .sim file into tmp_path.

    Usage:
        path = make_sim([("S1", [(3, 4), (0, 5)])])
        path = make_sim(samples, number_format=NumberFormat.INTEGER, gzipped=True)
    """

    def _make(
        samples: Sequence[Sample],
        filename: str = "test.sim",
        gzipped: bool = False,
        **kwargs,
    ) -> Path:
        path = tmp_path / filename
        data = encode_sim(samples, **kwargs)
        if gzipped:
            with gzip.open(path, "wb") as f:
                f.write(data)
        else:
            path.write_bytes(data)
        return path

    return _make


@pytest.fixture
def scenario_samples() -> list[Sample]:
    """Three samples, two probes, two channels.

    Raw magnitudes: S1=(5, 5), S2=(10, 10), S3=(7.5, 7.5)
    Reference: (7.5, 7.5)
    Normalized: S1=0.666667, S2=1.333333, S3=1.0
    XY difference: S1=3.0, S2=6.0, S3=4.5
    """
    return [
        ("S1", [(3, 4), (0, 5)]),
        ("S2", [(6, 8), (0, 10)]),
        ("S3", [(4.5, 6), (0, 7.5)]),
    ]


@pytest.fixture
def scenario_sim(make_sim: Callable[..., Path], scenario_samples: list[Sample]) -> Path:
    """Path to the three-sample scenario .sim file (float intensities)."""
    return make_sim(scenario_samples, filename="scenario.sim")


@pytest.fixture(autouse=True)
def _reset_logging():
    """Leave package logging unconfigured between tests."""
    yield
    reset_logging()
