"""
x402 Receipts.

Local JSON persistence of x402 payment and refund receipts for audit
and dashboard display.
"""

from x402_receipts.storage.models import (
    PaymentReceipt,
    ReceiptStats,
    ReceiptStore,
    RefundReceipt,
)
from x402_receipts.storage.repository import (
    ReceiptRepository,
    add_payment_receipt,
    add_refund_receipt,
    get_payment_by_tx_hash,
    get_receipt_stats,
    get_recent_payments,
    get_recent_refunds,
    load_receipts,
    receipts,
    save_receipts,
)

__all__ = [
    "PaymentReceipt",
    "RefundReceipt",
    "ReceiptStore",
    "ReceiptStats",
    "ReceiptRepository",
    "load_receipts",
    "save_receipts",
    "add_payment_receipt",
    "add_refund_receipt",
    "get_recent_payments",
    "get_recent_refunds",
    "get_payment_by_tx_hash",
    "get_receipt_stats",
    "receipts",
]
