"""
Ledger Query Gateway
Routes analytical requests to aggregation handlers and normalizes their output.
"""

__version__ = "1.0.0"
__author__ = "Query Gateway Team"
__description__ = "Analytical query gateway with multi-market aggregation and fail-open caching"
