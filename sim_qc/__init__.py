"""
SIM Intensity QC Tool.

Computes per-sample quality-control metrics (probe-normalized magnitude and
XY intensity difference) from .sim binary intensity files.
"""

__version__ = "1.0.0"
__author__ = "Data Tecnica International"
