"""
Trust Ledger

A small trust-based ledger for a closed group of account holders. Balances
are derived from dated transfers, transfers may be scheduled for a future
tick of the shared clock, and pending transfers can be revoked by either
party before they settle.
"""

__version__ = "1.0.0"
