from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable
from urllib.parse import quote

from money import money
from schemas import TransactionRow

UNLABELED_VENDOR = "Unlabeled merchant"
TRANSACTIONS_SEARCH_PATH = "/transactions"
# Characters encodeURIComponent leaves unescaped beyond quote()'s defaults.
URI_COMPONENT_SAFE = "!~*'()"


@dataclass
class VendorInsight:
    key: str
    label: str
    total: float
    count: int
    average: float
    href: str


@dataclass
class TransactionInsight:
    id: str
    occurred_on: date
    label: str
    vendor: str
    amount: float
    href: str


@dataclass
class TopVendors:
    month_key: str
    vendors: list[VendorInsight] = field(default_factory=list)
    transactions: list[TransactionInsight] = field(default_factory=list)


@dataclass
class _VendorBucket:
    label: str
    total: float = 0.0
    count: int = 0


def vendor_label(txn: TransactionRow) -> str:
    return (txn.merchant or "").strip() or (txn.description or "").strip() or UNLABELED_VENDOR


def search_href(query: str) -> str:
    return f"{TRANSACTIONS_SEARCH_PATH}?search={quote(query, safe=URI_COMPONENT_SAFE)}"


def summarize_vendors(
    month_key: str,
    expenses: Iterable[TransactionRow],
    *,
    vendor_limit: int,
    transaction_limit: int,
) -> TopVendors:
    buckets: dict[str, _VendorBucket] = {}
    ranked: list[tuple[TransactionRow, str, float]] = []
    for txn in expenses:
        label = vendor_label(txn)
        amount = money(txn.amount)
        bucket = buckets.setdefault(label.lower(), _VendorBucket(label=label))
        bucket.total = money(bucket.total + amount)
        bucket.count += 1
        ranked.append((txn, label, amount))

    vendors = [
        VendorInsight(
            key=key,
            label=bucket.label,
            total=bucket.total,
            count=bucket.count,
            average=money(bucket.total / bucket.count) if bucket.count else 0.0,
            href=search_href(bucket.label),
        )
        for key, bucket in buckets.items()
    ]
    vendors.sort(key=lambda v: (-v.total, v.key))

    ranked.sort(key=lambda item: (-item[2], item[0].occurred_on, item[0].id))
    transactions = [
        TransactionInsight(
            id=txn.id,
            occurred_on=txn.occurred_on,
            label=(txn.description or "").strip() or label,
            vendor=label,
            amount=amount,
            href=search_href(label),
        )
        for txn, label, amount in ranked[:transaction_limit]
    ]
    return TopVendors(
        month_key=month_key,
        vendors=vendors[:vendor_limit],
        transactions=transactions,
    )
