"""
Delimited file → typed finance records import pipeline.

A deterministic, testable pipeline that turns an arbitrary CSV export into
validated transactions, accounts and categories, with fuzzy column matching,
date format detection, per-cell error tracking and entity reconciliation.
"""

__version__ = "0.1.0"
