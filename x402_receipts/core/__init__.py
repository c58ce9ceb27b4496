"""
Core modules for x402 Receipts.

This package contains the amount arithmetic used by receipt statistics.
"""
