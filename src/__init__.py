"""
User Ledger - Source Package

A small registry of user accounts, each with a password credential,
a balance and a list of owned items, persisted between runs.

DESIGN PRINCIPLES:
1. One canonical model, storage is the only pluggable axis
2. Fail early, fail visibly
3. No silent corrections
4. Every mutation is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "User Ledger Team"
