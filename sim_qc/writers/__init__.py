"""Output file writers for QC results."""

from sim_qc.writers.results import format_results, write_results

__all__ = ["format_results", "write_results"]
