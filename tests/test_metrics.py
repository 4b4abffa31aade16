"""Tests for the QC metric passes."""

import logging
import re
from pathlib import Path

import numpy as np
import pytest

from sim_qc.errors import (
    DegenerateCohortError,
    UnsupportedChannelCountError,
    ZeroReferenceMagnitudeError,
)
from sim_qc.metrics import (
    ProgressReporter,
    check_reference,
    magnitude_by_sample,
    mean_magnitude_by_probe,
    probe_magnitudes,
    xydiff_by_sample,
)
from sim_qc.models import NumberFormat
from sim_qc.parsers.sim import SimReader


class TestProbeMagnitudes:
    """Tests for per-probe magnitude calculation."""

    def test_single_channel_is_absolute_value(self) -> None:
        """One channel: magnitude is |v|."""
        result = probe_magnitudes(np.array([3.0, -2.5, 0.0], dtype=np.float32), 1)

        np.testing.assert_array_equal(result, [3.0, 2.5, 0.0])

    def test_two_channels(self) -> None:
        """Two channels: magnitude is sqrt(a^2 + b^2)."""
        result = probe_magnitudes(np.array([3, 4, 0, 5, 6, 8], dtype=np.float32), 2)

        np.testing.assert_array_equal(result, [5.0, 5.0, 10.0])

    def test_three_channels(self) -> None:
        """Any channel count is supported."""
        result = probe_magnitudes(np.array([1, 2, 2, 2, 3, 6]), 3)

        np.testing.assert_array_equal(result, [3.0, 7.0])

    def test_integer_input_does_not_overflow(self) -> None:
        """uint16 intensities are squared in floating point."""
        intensities = np.array([60000, 60000], dtype=np.uint16)

        result = probe_magnitudes(intensities, 2)

        assert result.dtype == np.float64
        assert result[0] == pytest.approx(60000 * np.sqrt(2))

    def test_length_not_multiple_of_channels(self) -> None:
        """Reject a buffer that does not split into whole probes."""
        with pytest.raises(ValueError, match="not a multiple"):
            probe_magnitudes(np.array([1.0, 2.0, 3.0]), 2)

    def test_zero_channels(self) -> None:
        """Reject a channel count below one."""
        with pytest.raises(ValueError, match="at least 1"):
            probe_magnitudes(np.array([1.0]), 0)


class TestMeanMagnitudeByProbe:
    """Tests for the reference pass."""

    def test_scenario_reference(self, scenario_sim: Path) -> None:
        """Reference is the per-probe mean magnitude."""
        with SimReader.open(scenario_sim) as reader:
            reference = mean_magnitude_by_probe(reader)

        np.testing.assert_array_equal(reference, [7.5, 7.5])

    def test_reads_every_record_once(self, scenario_sim: Path) -> None:
        """The pass consumes exactly num_samples records."""
        with SimReader.open(scenario_sim) as reader:
            mean_magnitude_by_probe(reader)
            assert reader.position == 3

    def test_integer_intensities(self, make_sim) -> None:
        """uint16 files give the same reference as float files."""
        samples = [("A", [(3, 4), (5, 12)]), ("B", [(6, 8), (15, 20)])]
        path = make_sim(samples, number_format=NumberFormat.INTEGER)

        with SimReader.open(path) as reader:
            reference = mean_magnitude_by_probe(reader)

        np.testing.assert_array_equal(reference, [7.5, 19.0])

    def test_no_samples(self, make_sim) -> None:
        """An empty cohort is an explicit error."""
        path = make_sim([], num_probes=4, num_channels=2)

        with SimReader.open(path) as reader:
            with pytest.raises(DegenerateCohortError, match="no samples"):
                mean_magnitude_by_probe(reader)

    def test_no_probes(self, make_sim) -> None:
        """A cohort without probes is an explicit error."""
        path = make_sim([("A", []), ("B", [])], num_probes=0, num_channels=2)

        with SimReader.open(path) as reader:
            with pytest.raises(DegenerateCohortError, match="no probes"):
                mean_magnitude_by_probe(reader)


class TestMagnitudeBySample:
    """Tests for the normalization pass."""

    def test_scenario_values(self, scenario_sim: Path) -> None:
        """Normalized magnitudes match the worked example."""
        with SimReader.open(scenario_sim) as reader:
            reference = mean_magnitude_by_probe(reader)
            reader.reset()
            results = magnitude_by_sample(reader, reference)

        assert results.metric == "magnitude"
        assert results.names == ["S1", "S2", "S3"]
        np.testing.assert_allclose(results.values, [2 / 3, 4 / 3, 1.0])

    def test_identical_samples_normalize_to_one(self, make_sim) -> None:
        """A sample equal to the reference scores exactly 1.0."""
        probes = [(100, 200), (30, 40), (1, 1)]
        path = make_sim([("A", probes), ("B", probes), ("C", probes)])

        with SimReader.open(path) as reader:
            reference = mean_magnitude_by_probe(reader)
            reader.reset()
            results = magnitude_by_sample(reader, reference)

        np.testing.assert_allclose(results.values, [1.0, 1.0, 1.0])

    def test_matches_full_matrix_computation(self, make_sim) -> None:
        """Two sequential passes equal a direct computation on all data."""
        rng = np.random.default_rng(7)
        matrix = rng.integers(1, 5000, size=(6, 25, 2))
        samples = [(f"sample{i}", matrix[i].tolist()) for i in range(6)]
        path = make_sim(samples, number_format=NumberFormat.INTEGER)

        with SimReader.open(path) as reader:
            reference = mean_magnitude_by_probe(reader)
            reader.reset()
            results = magnitude_by_sample(reader, reference)

        mags = np.sqrt((matrix.astype(np.float64) ** 2).sum(axis=2))
        expected = (mags / mags.mean(axis=0)).mean(axis=1)
        np.testing.assert_allclose(results.values, expected, rtol=1e-12)
        assert results.names == [f"sample{i}" for i in range(6)]

    def test_zero_reference_probe(self, make_sim) -> None:
        """A probe with zero reference magnitude fails before any read."""
        path = make_sim([("A", [(1, 1), (0, 0)]), ("B", [(2, 2), (0, 0)])])

        with SimReader.open(path) as reader:
            reference = mean_magnitude_by_probe(reader)
            reader.reset()
            with pytest.raises(ZeroReferenceMagnitudeError) as excinfo:
                magnitude_by_sample(reader, reference)
            assert reader.position == 0

        assert excinfo.value.probes == [1]

    def test_reference_length_mismatch(self, scenario_sim: Path) -> None:
        """The reference must have one entry per probe."""
        with SimReader.open(scenario_sim) as reader:
            with pytest.raises(ValueError, match="shape"):
                magnitude_by_sample(reader, np.array([1.0, 1.0, 1.0]))


class TestCheckReference:
    """Tests for reference vector validation."""

    def test_positive_reference_passes(self) -> None:
        check_reference(np.array([0.5, 1.0, 1e-9]))

    def test_nan_and_negative_rejected(self) -> None:
        with pytest.raises(ZeroReferenceMagnitudeError) as excinfo:
            check_reference(np.array([1.0, np.nan, -2.0, 0.0]))

        assert excinfo.value.probes == [1, 2, 3]
        assert "3 probe(s)" in str(excinfo.value)


class TestXYDiffBySample:
    """Tests for XY intensity difference."""

    def test_scenario_values(self, scenario_sim: Path) -> None:
        """XY difference is the mean of (channel 2 - channel 1)."""
        with SimReader.open(scenario_sim) as reader:
            results = xydiff_by_sample(reader)

        assert results.metric == "xydiff"
        assert results.names == ["S1", "S2", "S3"]
        np.testing.assert_array_equal(results.values, [3.0, 6.0, 4.5])

    def test_integer_negative_difference(self, make_sim) -> None:
        """uint16 differences below zero do not wrap around."""
        path = make_sim(
            [("A", [(100, 40), (10, 20)])], number_format=NumberFormat.INTEGER
        )

        with SimReader.open(path) as reader:
            results = xydiff_by_sample(reader)

        np.testing.assert_array_equal(results.values, [-25.0])

    @pytest.mark.parametrize("num_channels", [1, 3])
    def test_requires_two_channels(self, make_sim, num_channels: int) -> None:
        """XY difference is undefined unless there are exactly two channels."""
        path = make_sim([("A", [tuple(range(1, num_channels + 1))])])

        with SimReader.open(path) as reader:
            with pytest.raises(UnsupportedChannelCountError, match="exactly two"):
                xydiff_by_sample(reader)
            assert reader.position == 0

    def test_no_samples(self, make_sim) -> None:
        path = make_sim([], num_probes=3, num_channels=2)

        with SimReader.open(path) as reader:
            with pytest.raises(DegenerateCohortError):
                xydiff_by_sample(reader)


class TestProgressReporter:
    """Tests for periodic progress notifications."""

    def test_reports_every_interval(self, make_sim, caplog: pytest.LogCaptureFixture) -> None:
        """Samples 1, 3 and 5 of 5 are reported with interval 2."""
        samples = [(f"S{i}", [(1, 2)]) for i in range(5)]
        path = make_sim(samples)
        progress = ProgressReporter(interval=2)

        caplog.set_level(logging.INFO, logger="sim_qc")
        with SimReader.open(path) as reader:
            mean_magnitude_by_probe(reader, progress)

        messages = [r.getMessage() for r in caplog.records if "Sample " in r.getMessage()]
        assert [m.split(" ", 1)[1] for m in messages] == [
            "Sample 1 of 5",
            "Sample 3 of 5",
            "Sample 5 of 5",
        ]
        assert re.match(r"\d{2}-\d{2}-\d{4}_\d{2}:\d{2}:\d{2} ", messages[0])

    def test_custom_time_format(self, caplog: pytest.LogCaptureFixture) -> None:
        progress = ProgressReporter(interval=1, time_format="%Y")

        caplog.set_level(logging.INFO, logger="sim_qc")
        progress.update(0, 10)

        assert re.fullmatch(r"\d{4} Sample 1 of 10", caplog.records[-1].getMessage())

    def test_progress_does_not_change_results(self, scenario_sim: Path) -> None:
        with SimReader.open(scenario_sim) as reader:
            quiet = mean_magnitude_by_probe(reader)
            reader.reset()
            loud = mean_magnitude_by_probe(reader, ProgressReporter(interval=1))

        np.testing.assert_array_equal(quiet, loud)

    def test_display_hooks_follow_every_sample(self, scenario_sim: Path) -> None:
        """start fires once per pass; advance fires for every sample, not per interval."""
        starts: list[tuple[str, int]] = []
        advances: list[int] = []
        progress = ProgressReporter(
            interval=100,
            on_start=lambda description, total: starts.append((description, total)),
            on_advance=lambda: advances.append(1),
        )

        with SimReader.open(scenario_sim) as reader:
            reference = mean_magnitude_by_probe(reader, progress)
            reader.reset()
            magnitude_by_sample(reader, reference, progress)
            reader.reset()
            xydiff_by_sample(reader, progress)

        assert starts == [
            ("Mean magnitude by probe", 3),
            ("Normalized magnitude by sample", 3),
            ("XY intensity difference", 3),
        ]
        assert len(advances) == 9

    def test_hooks_keep_log_notifications(self, caplog: pytest.LogCaptureFixture) -> None:
        advances: list[int] = []
        progress = ProgressReporter(interval=1, on_advance=lambda: advances.append(1))

        caplog.set_level(logging.INFO, logger="sim_qc")
        progress.update(0, 2)
        progress.update(1, 2)

        assert advances == [1, 1]
        assert [r.getMessage().split(" ", 1)[1] for r in caplog.records] == [
            "Sample 1 of 2",
            "Sample 2 of 2",
        ]
