"""
Personal Ledger - Source Package

A personal ledger that tracks cash transactions and a portfolio of
valued assets and liabilities, and reconstructs net worth on any date
from sparse, dated value snapshots.

DESIGN PRINCIPLES:
1. Valuation is a pure function of (assets, date)
2. Fail early, fail visibly
3. No silent corrections
4. Every mutation must be auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Personal Ledger Team"
