"""
Data models for storage layer.

Defines receipt records, the store aggregate and their JSON mapping.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

NUMBER = (int, float)
# Amounts are normally strings; older writers stored plain JSON numbers
AMOUNT = (str, int, float)


def now_ms() -> int:
    """Current time as integer epoch milliseconds."""
    return int(time.time() * 1000)


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


def _typed(data: Dict[str, Any], key: str, types, optional: bool = False) -> Any:
    """Fetch ``key`` from a receipt object, checking its JSON type.

    Raises:
        KeyError: If a required key is missing
        TypeError: If the value has the wrong type
    """
    if not isinstance(data, dict):
        raise TypeError("receipt must be a JSON object")
    value = data.get(key) if optional else data[key]
    if value is None and optional:
        return None
    # bool is an int subclass; JSON true/false is never a number here
    if isinstance(value, bool) or not isinstance(value, types):
        raise TypeError(f"'{key}' has invalid type {type(value).__name__}")
    return value


@dataclass(frozen=True)
class PaymentReceipt:
    """Immutable record of a completed x402 payment.

    ``tx_hash`` identifies the payment; the repository refuses to store
    two payments with the same hash.
    """
    tx_hash: str
    payer: str
    recipient: str
    amount: Union[str, int, float]
    currency: str
    resource: str
    timestamp: int
    chain_id: int
    explorer_url: str
    facilitator_url: str
    schema_version: str
    metadata: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the camelCase JSON object stored on disk."""
        return _drop_none({
            "txHash": self.tx_hash,
            "payer": self.payer,
            "recipient": self.recipient,
            "amount": self.amount,
            "currency": self.currency,
            "resource": self.resource,
            "timestamp": self.timestamp,
            "chainId": self.chain_id,
            "explorerUrl": self.explorer_url,
            "facilitatorUrl": self.facilitator_url,
            "schemaVersion": self.schema_version,
            "metadata": self.metadata,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PaymentReceipt":
        """Build a receipt from its JSON object.

        Raises:
            KeyError: If a required field is missing
            TypeError: If a field has the wrong JSON type
        """
        return cls(
            tx_hash=_typed(data, "txHash", str),
            payer=_typed(data, "payer", str),
            recipient=_typed(data, "recipient", str),
            amount=_typed(data, "amount", AMOUNT),
            currency=_typed(data, "currency", str),
            resource=_typed(data, "resource", str),
            timestamp=_typed(data, "timestamp", int),
            chain_id=_typed(data, "chainId", int),
            explorer_url=_typed(data, "explorerUrl", str),
            facilitator_url=_typed(data, "facilitatorUrl", str),
            schema_version=_typed(data, "schemaVersion", str),
            metadata=data.get("metadata"),
        )


@dataclass(frozen=True)
class RefundReceipt:
    """Immutable record of a refund issued against a payment.

    Refunds reference the original payment by hash only and are
    append-only: identical refunds are stored as separate entries.
    """
    original_tx_hash: str
    refund_percent: float
    refund_amount: Union[str, int, float]
    reason: str
    breach_type: str
    timestamp: int
    chain_id: int
    refund_tx_hash: Optional[str] = None
    stream_id: Optional[str] = None
    explorer_url: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "originalTxHash": self.original_tx_hash,
            "refundTxHash": self.refund_tx_hash,
            "streamId": self.stream_id,
            "refundPercent": self.refund_percent,
            "refundAmount": self.refund_amount,
            "reason": self.reason,
            "breachType": self.breach_type,
            "timestamp": self.timestamp,
            "chainId": self.chain_id,
            "explorerUrl": self.explorer_url,
            "metadata": self.metadata,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RefundReceipt":
        return cls(
            original_tx_hash=_typed(data, "originalTxHash", str),
            refund_tx_hash=_typed(data, "refundTxHash", str, optional=True),
            stream_id=_typed(data, "streamId", str, optional=True),
            refund_percent=_typed(data, "refundPercent", NUMBER),
            refund_amount=_typed(data, "refundAmount", AMOUNT),
            reason=_typed(data, "reason", str),
            breach_type=_typed(data, "breachType", str),
            timestamp=_typed(data, "timestamp", int),
            chain_id=_typed(data, "chainId", int),
            explorer_url=_typed(data, "explorerUrl", str, optional=True),
            metadata=data.get("metadata"),
        )


@dataclass
class ReceiptStore:
    """All receipts held in the backing file.

    Mutable on purpose: the repository appends to the lists and stamps
    ``last_updated`` before every save.
    """
    payments: List[PaymentReceipt] = field(default_factory=list)
    refunds: List[RefundReceipt] = field(default_factory=list)
    last_updated: int = field(default_factory=now_ms)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "payments": [payment.to_dict() for payment in self.payments],
            "refunds": [refund.to_dict() for refund in self.refunds],
            "lastUpdated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReceiptStore":
        """Build a store from the parsed JSON document.

        Raises:
            TypeError: If the document, its collections or a receipt field
                have the wrong shape
            KeyError: If a receipt is missing a required field
        """
        if not isinstance(data, dict):
            raise TypeError("receipt document must be a JSON object")

        payments = data["payments"]
        refunds = data["refunds"]
        if not isinstance(payments, list) or not isinstance(refunds, list):
            raise TypeError("'payments' and 'refunds' must be JSON arrays")

        last_updated = data.get("lastUpdated")
        if last_updated is None:
            last_updated = now_ms()
        elif isinstance(last_updated, bool) or not isinstance(last_updated, int):
            raise TypeError("'lastUpdated' must be an integer")

        return cls(
            payments=[PaymentReceipt.from_dict(item) for item in payments],
            refunds=[RefundReceipt.from_dict(item) for item in refunds],
            last_updated=last_updated,
        )


@dataclass(frozen=True)
class ReceiptStats:
    """Aggregate figures over the whole store.

    Totals are strings so that arbitrarily large base-unit sums survive
    JSON consumers that only have doubles.
    """
    total_payments: int
    total_refunds: int
    total_paid: str
    total_refunded: str
    last_updated: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalPayments": self.total_payments,
            "totalRefunds": self.total_refunds,
            "totalPaid": self.total_paid,
            "totalRefunded": self.total_refunded,
            "lastUpdated": self.last_updated,
        }
