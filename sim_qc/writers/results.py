"""Per-sample results file writer.

Output format (tab-separated, no header):
sample_name  value
S1           0.666667
"""

import os
import tempfile
from pathlib import Path

from sim_qc.errors import OutputWriteError
from sim_qc.models import SampleMetrics

VALUE_FORMAT = "{:.6f}"


def format_results(results: SampleMetrics) -> str:
    """Render results as ``name<TAB>value`` lines, one per sample."""
    return "".join(
        f"{name}\t{VALUE_FORMAT.format(value)}\n" for name, value in results.rows()
    )


def write_results(results: SampleMetrics, output_path: Path) -> Path:
    """Write per-sample results atomically.

    Writes to a temporary file in the destination directory first, then
    renames, so an interrupted or failed write leaves no partial file.

    Args:
        results: Metric values aligned with sample names
        output_path: Destination file

    Returns:
        Path to the written file

    Raises:
        OutputWriteError: If the destination cannot be written
    """
    output_path = Path(output_path)
    tmp_path: Path | None = None
    try:
        try:
            with tempfile.NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                dir=output_path.parent,
                prefix=f".{output_path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_path = Path(tmp.name)
                tmp.write(format_results(results))
            os.replace(tmp_path, output_path)
        except BaseException:
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink()
            raise
    except (OSError, UnicodeError) as e:
        raise OutputWriteError(
            f"Cannot write {results.metric} results to {output_path}: {e}"
        ) from e

    return output_path
