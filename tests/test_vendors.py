from datetime import date

from models import TransactionType
from schemas import TransactionRow
from vendors import UNLABELED_VENDOR, search_href, summarize_vendors, vendor_label


def _expense(txn_id, day, amount, merchant=None, description=None):
    return TransactionRow(
        id=txn_id,
        occurred_on=date(2026, 10, day),
        amount=amount,
        type=TransactionType.expense,
        merchant=merchant,
        description=description,
    )


def test_vendor_label_falls_back_to_description_then_placeholder() -> None:
    assert vendor_label(_expense("a", 1, 5, merchant="  Cafe Luna ")) == "Cafe Luna"
    labeled = _expense("b", 1, 5, merchant=" ", description="Farmers market")
    assert vendor_label(labeled) == "Farmers market"
    assert vendor_label(_expense("c", 1, 5)) == UNLABELED_VENDOR


def test_search_href_encodes_like_uri_components() -> None:
    assert search_href("Trader Joe's") == "/transactions?search=Trader%20Joe's"
    assert search_href("A&B/C") == "/transactions?search=A%26B%2FC"


def test_vendors_group_case_insensitively_and_rank_by_total() -> None:
    expenses = [
        _expense("t1", 2, 40, merchant="Trader Joe's"),
        _expense("t2", 9, 60, merchant="trader joe's", description="Weekly shop"),
        _expense("t3", 4, 75, merchant="Shell"),
        _expense("t4", 5, 12),
    ]

    top = summarize_vendors("2026-10", expenses, vendor_limit=2, transaction_limit=3)

    assert top.month_key == "2026-10"
    assert [v.label for v in top.vendors] == ["Trader Joe's", "Shell"]
    joes = top.vendors[0]
    assert joes.key == "trader joe's"
    assert joes.total == 100
    assert joes.count == 2
    assert joes.average == 50
    assert joes.href == "/transactions?search=Trader%20Joe's"

    assert [t.id for t in top.transactions] == ["t3", "t2", "t1"]
    assert top.transactions[1].label == "Weekly shop"
    assert top.transactions[1].vendor == "trader joe's"
    assert top.transactions[0].label == "Shell"


def test_no_expenses_gives_empty_lists() -> None:
    top = summarize_vendors("2026-10", [], vendor_limit=8, transaction_limit=8)

    assert top.vendors == []
    assert top.transactions == []
