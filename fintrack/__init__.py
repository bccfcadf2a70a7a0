"""
Finance Tracker - Source Package

A personal finance tracker: record income and expense transactions,
filter them, and see balance, totals and savings rate.

DESIGN PRINCIPLES:
1. Every read and write is scoped to the signed-in user
2. Totals are recomputed from a full re-fetch, never patched
3. No silent corrections: bad input is rejected, bad stored data is flagged
4. Every mutation must be auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Finance Tracker Team"
