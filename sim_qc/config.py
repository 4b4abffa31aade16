"""Configuration dataclass for the sim-qc tool.

Configuration options for a QC run over one .sim file.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from sim_qc.metrics import DEFAULT_PROGRESS_INTERVAL, DEFAULT_TIME_FORMAT, ProgressReporter


@dataclass
class Config:
    """Configuration for a .sim QC run.

    Attributes:
        sim_file: Path to the .sim intensity file (may be gzipped)
        magnitude_file: Output path for normalized magnitudes (skip if None)
        xydiff_file: Output path for XY intensity differences (skip if None)
        verbose: Enable verbose logging, including per-sample progress
        progress_interval: Report progress every this many samples
        time_format: strftime format for progress timestamps
        log_file: Optional path for a detailed log file
    """

    sim_file: Path

    # Outputs (at least one required)
    magnitude_file: Path | None = None
    xydiff_file: Path | None = None

    # Behavior flags
    verbose: bool = False

    # Progress reporting
    progress_interval: int = DEFAULT_PROGRESS_INTERVAL
    time_format: str = DEFAULT_TIME_FORMAT

    log_file: Path | None = None

    def __post_init__(self) -> None:
        """Ensure paths are Path objects."""
        if isinstance(self.sim_file, str):
            self.sim_file = Path(self.sim_file)
        if isinstance(self.magnitude_file, str):
            self.magnitude_file = Path(self.magnitude_file)
        if isinstance(self.xydiff_file, str):
            self.xydiff_file = Path(self.xydiff_file)
        if isinstance(self.log_file, str):
            self.log_file = Path(self.log_file)

    @property
    def outputs(self) -> dict[str, Path]:
        """Requested metrics mapped to their output paths, magnitude first."""
        outputs: dict[str, Path] = {}
        if self.magnitude_file is not None:
            outputs["magnitude"] = self.magnitude_file
        if self.xydiff_file is not None:
            outputs["xydiff"] = self.xydiff_file
        return outputs

    def progress_reporter(
        self,
        on_start: Callable[[str, int], None] | None = None,
        on_advance: Callable[[], None] | None = None,
    ) -> ProgressReporter:
        """Build the progress reporter for this run, with optional display hooks."""
        return ProgressReporter(
            interval=self.progress_interval,
            time_format=self.time_format,
            on_start=on_start,
            on_advance=on_advance,
        )

    def validate(self) -> list[str]:
        """Validate configuration and return list of errors.

        Returns:
            List of error messages (empty if valid)
        """
        errors: list[str] = []

        if not self.sim_file.exists():
            errors.append(f"SIM file not found: {self.sim_file}")

        if not self.outputs:
            errors.append("No metric requested: give a magnitude and/or xydiff output path")

        for metric, path in self.outputs.items():
            if not path.parent.exists():
                errors.append(f"Output directory for {metric} does not exist: {path.parent}")
            elif path.is_dir():
                errors.append(f"Output path for {metric} is a directory: {path}")

        if (
            self.magnitude_file is not None
            and self.xydiff_file is not None
            and self.magnitude_file.resolve() == self.xydiff_file.resolve()
        ):
            errors.append(f"Magnitude and xydiff outputs are the same file: {self.magnitude_file}")

        if self.progress_interval < 1:
            errors.append(f"progress_interval must be at least 1: {self.progress_interval}")

        return errors
