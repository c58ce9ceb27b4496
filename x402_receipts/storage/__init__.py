"""
Storage layer for receipts.

Models, backing-file access and the receipt repository.
"""
