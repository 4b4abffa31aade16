"""Main orchestration for the sim-qc tool.

Implements run_qc(), which opens the .sim file, computes each requested
metric and writes its results file.
"""

import logging
from pathlib import Path

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)

from sim_qc.config import Config
from sim_qc.metrics import check_xydiff_supported
from sim_qc.parsers.sim import SimReader
from sim_qc.qc import SimQC

console = Console(stderr=True)
logger = logging.getLogger(__name__)


def run_qc(config: Config) -> dict[str, Path]:
    """Run every QC metric requested in the configuration.

    Metrics run in order (magnitude, then xydiff). The xydiff channel
    check happens before either metric runs. Any other failure aborts the
    run; outputs already written by earlier metrics are kept.

    Args:
        config: Configuration with input and output paths

    Returns:
        Mapping of metric name to the results file written

    Raises:
        SourceOpenError: If the .sim file cannot be opened
        UnsupportedChannelCountError: If xydiff is requested for a
            non-two-channel file
        DegenerateCohortError: If the file has no samples or probes
        ZeroReferenceMagnitudeError: If a probe has zero reference magnitude
        OutputWriteError: If a results file cannot be written
    """
    written: dict[str, Path] = {}

    console.print(f"Reading {config.sim_file.name}")
    with SimReader.open(config.sim_file) as reader:
        header = reader.header
        console.print(
            f"Samples: {header.num_samples:,}  Probes: {header.num_probes:,}  "
            f"Channels: {header.num_channels}\n"
        )

        # Fail on an unsupported xydiff request before any output is written
        if config.xydiff_file is not None:
            check_xydiff_supported(reader)

        # One bar per pass over the records
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            console=console,
        ) as progress:
            tasks: list[TaskID] = []

            def start_pass(description: str, total: int) -> None:
                tasks.append(progress.add_task(f"{description}...", total=total))

            def advance_pass() -> None:
                progress.advance(tasks[-1])

            qc = SimQC(reader, config.progress_reporter(start_pass, advance_pass))

            if config.magnitude_file is not None:
                console.print("Computing normalized magnitude by sample")
                written["magnitude"] = qc.write_magnitude(config.magnitude_file)
                logger.info("Finished magnitude")

            if config.xydiff_file is not None:
                console.print("Computing XY intensity difference by sample")
                written["xydiff"] = qc.write_xydiff(config.xydiff_file)
                logger.info("Finished xydiff")

    console.print("\n[bold]Output files generated:[/bold]")
    for metric, path in written.items():
        console.print(f"  {metric + ':':<12}{path}")
    console.print("")

    return written
