"""
Repository pattern for receipt persistence.

Every operation loads the whole receipts document from disk, works on that
fresh copy and, for mutations, writes the whole document back. Nothing is
cached between calls and no locking is done: two processes appending at
the same time can lose one of the appends.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from types import SimpleNamespace
from typing import List, Optional, Union

from x402_receipts.core.amounts import sum_amounts
from .files import read_document, resolve_path, write_document
from .models import PaymentReceipt, ReceiptStats, ReceiptStore, RefundReceipt, now_ms

logger = logging.getLogger(__name__)

DEFAULT_RECENT_COUNT = 20

PathLike = Union[str, Path]


@dataclass(frozen=True)
class LoadResult:
    """Outcome of reading the receipts document.

    ``store`` is always usable; it is empty when ``error`` is set.
    """
    store: ReceiptStore
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class SaveResult:
    """Outcome of writing the receipts document."""
    path: Path
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ReceiptRepository:
    """Repository for the payment and refund receipts of one JSON file.

    Args:
        path: Receipts file; defaults to ``data/receipts.json`` inside the package
        atomic_writes: Replace the file atomically on save
    """

    def __init__(self, path: Optional[PathLike] = None, atomic_writes: bool = True):
        self.path = resolve_path(path)
        self.atomic_writes = atomic_writes

    @classmethod
    def from_config(cls, config) -> "ReceiptRepository":
        """Build a repository from a loaded ``ReceiptsConfig``."""
        return cls(config.storage.path, atomic_writes=config.storage.atomic_writes)

    def load_result(self) -> LoadResult:
        """Read the store, reporting failures instead of hiding them.

        A missing file is not a failure: it is an empty store.
        """
        if not self.path.exists():
            return LoadResult(store=ReceiptStore())

        try:
            document = read_document(self.path)
            return LoadResult(store=ReceiptStore.from_dict(document))
        except (OSError, ValueError, KeyError, TypeError) as e:
            return LoadResult(store=ReceiptStore(), error=f"{type(e).__name__}: {e}")

    def load(self) -> ReceiptStore:
        """Load receipts from disk.

        Never raises; an unreadable or malformed file is logged and an
        empty store is returned in its place.
        """
        result = self.load_result()
        if not result.ok:
            logger.error("Error loading receipts from %s: %s", self.path, result.error)
        return result.store

    def save_result(self, store: ReceiptStore) -> SaveResult:
        """Write the store, stamping ``store.last_updated`` first."""
        store.last_updated = now_ms()
        try:
            write_document(self.path, store.to_dict(), atomic=self.atomic_writes)
        except (OSError, TypeError, ValueError) as e:
            return SaveResult(path=self.path, error=f"{type(e).__name__}: {e}")

        logger.debug(
            "Saved %d payments and %d refunds to %s",
            len(store.payments), len(store.refunds), self.path
        )
        return SaveResult(path=self.path)

    def save(self, store: ReceiptStore) -> None:
        """Save receipts to disk.

        Failures are logged and otherwise ignored; use ``save_result`` to
        find out whether the write happened.
        """
        result = self.save_result(store)
        if not result.ok:
            logger.error("Error saving receipts to %s: %s", self.path, result.error)

    def add_payment(self, receipt: PaymentReceipt) -> None:
        """Append a payment unless one with the same tx hash is stored."""
        store = self.load()

        if any(p.tx_hash == receipt.tx_hash for p in store.payments):
            logger.debug("Payment %s already recorded, skipping", receipt.tx_hash)
            return

        store.payments.append(receipt)
        self.save(store)

    def add_refund(self, receipt: RefundReceipt) -> None:
        """Append a refund. Refunds are never deduplicated."""
        store = self.load()
        store.refunds.append(receipt)
        self.save(store)

    def recent_payments(self, count: int = DEFAULT_RECENT_COUNT) -> List[PaymentReceipt]:
        """Get payments ordered by timestamp (newest first).

        Args:
            count: Maximum number of payments to return

        Returns:
            Up to ``count`` payments
        """
        store = self.load()
        return sorted(store.payments, key=lambda p: p.timestamp, reverse=True)[:count]

    def recent_refunds(self, count: int = DEFAULT_RECENT_COUNT) -> List[RefundReceipt]:
        """Get refunds ordered by timestamp (newest first)."""
        store = self.load()
        return sorted(store.refunds, key=lambda r: r.timestamp, reverse=True)[:count]

    def payment_by_tx_hash(self, tx_hash: str) -> Optional[PaymentReceipt]:
        """Find the payment with exactly this tx hash, or None."""
        store = self.load()
        return next((p for p in store.payments if p.tx_hash == tx_hash), None)

    def stats(self) -> ReceiptStats:
        """Compute counts and base-unit totals over the whole store.

        Raises:
            AmountParseError: If any stored amount is not an integer string
        """
        store = self.load()

        total_paid = sum_amounts(p.amount for p in store.payments)
        total_refunded = sum_amounts(r.refund_amount for r in store.refunds)

        return ReceiptStats(
            total_payments=len(store.payments),
            total_refunds=len(store.refunds),
            total_paid=str(total_paid),
            total_refunded=str(total_refunded),
            last_updated=store.last_updated,
        )


# Global repository instance
_default_repository: Optional[ReceiptRepository] = None


def get_repository(path: Optional[PathLike] = None) -> ReceiptRepository:
    """Get a repository instance.

    Without a path this returns a shared instance bound to the default
    receipts file; with a path a new repository for that file is returned.

    Args:
        path: Optional receipts file

    Returns:
        An instance of ReceiptRepository
    """
    global _default_repository
    if path is not None:
        return ReceiptRepository(path)
    if _default_repository is None:
        _default_repository = ReceiptRepository()
    return _default_repository


def load_receipts(path: Optional[PathLike] = None) -> ReceiptStore:
    """Load the receipt store, or an empty store if it cannot be read."""
    return get_repository(path).load()


def save_receipts(store: ReceiptStore, path: Optional[PathLike] = None) -> None:
    """Save the whole store, updating ``store.last_updated``."""
    get_repository(path).save(store)


def add_payment_receipt(receipt: PaymentReceipt, path: Optional[PathLike] = None) -> None:
    """Record a payment receipt; duplicates by tx hash are dropped."""
    get_repository(path).add_payment(receipt)


def add_refund_receipt(receipt: RefundReceipt, path: Optional[PathLike] = None) -> None:
    """Record a refund receipt."""
    get_repository(path).add_refund(receipt)


def get_recent_payments(
    count: int = DEFAULT_RECENT_COUNT,
    path: Optional[PathLike] = None
) -> List[PaymentReceipt]:
    """Get the most recent payment receipts, newest first."""
    return get_repository(path).recent_payments(count)


def get_recent_refunds(
    count: int = DEFAULT_RECENT_COUNT,
    path: Optional[PathLike] = None
) -> List[RefundReceipt]:
    """Get the most recent refund receipts, newest first."""
    return get_repository(path).recent_refunds(count)


def get_payment_by_tx_hash(tx_hash: str, path: Optional[PathLike] = None) -> Optional[PaymentReceipt]:
    """Find a payment by transaction hash, or None if it is not recorded."""
    return get_repository(path).payment_by_tx_hash(tx_hash)


def get_receipt_stats(path: Optional[PathLike] = None) -> ReceiptStats:
    """Get receipt statistics for dashboards."""
    return get_repository(path).stats()


receipts = SimpleNamespace(
    load_receipts=load_receipts,
    save_receipts=save_receipts,
    add_payment_receipt=add_payment_receipt,
    add_refund_receipt=add_refund_receipt,
    get_recent_payments=get_recent_payments,
    get_recent_refunds=get_recent_refunds,
    get_payment_by_tx_hash=get_payment_by_tx_hash,
    get_receipt_stats=get_receipt_stats,
)
