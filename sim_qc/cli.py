"""Typer CLI for the sim-qc tool.

Usage:
    # Both metrics
    sim-qc qc -i cohort.sim -m magnitude.txt -x xydiff.txt

    # Magnitude only, with progress every 500 samples
    sim-qc qc -i cohort.sim -m magnitude.txt -v --progress-interval 500

    # Inspect a file header
    sim-qc info -i cohort.sim
"""

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from sim_qc import __version__
from sim_qc.errors import SimQCError

app = typer.Typer(
    name="sim-qc",
    help="Compute per-sample QC metrics from .sim intensity files",
    add_completion=False,
)

console = Console(stderr=True)


@app.command()
def qc(
    infile: Annotated[
        Path,
        typer.Option(
            "--infile", "-i",
            help=".sim intensity file (may be gzipped)",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
        ),
    ],
    magnitude: Annotated[
        Path | None,
        typer.Option(
            "--magnitude", "-m",
            help="Output path for probe-normalized magnitude by sample",
            dir_okay=False,
        ),
    ] = None,
    xydiff: Annotated[
        Path | None,
        typer.Option(
            "--xydiff", "-x",
            help="Output path for XY intensity difference by sample (two channels only)",
            dir_okay=False,
        ),
    ] = None,
    progress_interval: Annotated[
        int,
        typer.Option(
            "--progress-interval",
            help="Report progress every N samples in verbose mode (default: 100)",
            min=1,
        ),
    ] = 100,
    log_file: Annotated[
        Path | None,
        typer.Option(
            "--log-file",
            help="Write a detailed log to this file",
            dir_okay=False,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose", "-v",
            help="Enable verbose logging",
        ),
    ] = False,
) -> None:
    """Compute sample QC metrics from a .sim file.

    Writes one tab-separated line per sample (name, value to six decimal
    places) for each requested metric.

    Metrics:

    - magnitude: mean over probes of the sample's probe intensity
      magnitude divided by the cohort mean magnitude of that probe

    - xydiff: mean over probes of (channel 2 - channel 1)
    """
    from sim_qc.config import Config
    from sim_qc.logging_config import setup_logging
    from sim_qc.main import run_qc

    console.print(f"[bold]SIM Intensity QC[/bold] v{__version__}\n", style="blue")

    config = Config(
        sim_file=infile,
        magnitude_file=magnitude,
        xydiff_file=xydiff,
        verbose=verbose,
        progress_interval=progress_interval,
        log_file=log_file,
    )

    errors = config.validate()
    if errors:
        for error in errors:
            console.print(f"[red]ERROR:[/red] {error}")
        raise typer.Exit(code=1)

    setup_logging(verbose=verbose, log_file=log_file)

    if config.verbose:
        console.print("Verbose logging flag set")

    try:
        run_qc(config)
    except SimQCError as e:
        console.print(f"[red]ERROR:[/red] {e}")
        if verbose:
            import traceback
            console.print(traceback.format_exc())
        raise typer.Exit(code=1)


@app.command()
def info(
    infile: Annotated[
        Path,
        typer.Option(
            "--infile", "-i",
            help=".sim intensity file (may be gzipped)",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
        ),
    ],
) -> None:
    """Print the header fields of a .sim file."""
    from sim_qc.parsers.sim import read_header

    try:
        header = read_header(infile)
    except SimQCError as e:
        console.print(f"[red]ERROR:[/red] {e}")
        raise typer.Exit(code=1)

    out = Console()
    out.print(f"File:             {infile}")
    out.print(f"Version:          {header.version}")
    out.print(f"Number format:    {header.number_format.name.lower()}")
    out.print(f"Sample name size: {header.sample_name_size}")
    out.print(f"Samples:          {header.num_samples}")
    out.print(f"Probes:           {header.num_probes}")
    out.print(f"Channels:         {header.num_channels}")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
