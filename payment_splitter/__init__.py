"""
Payment Splitter - Source Package

A small expense-splitting ledger for a group of people sharing costs.

DESIGN PRINCIPLES:
1. Expenses are split evenly, with no amount lost to rounding
2. Invalid input is ignored, never half-applied
3. Destructive actions need explicit confirmation
4. Every command is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Payment Splitter Team"
