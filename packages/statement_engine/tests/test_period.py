from datetime import date

import pytest

from packages.statement_engine.models import Transaction
from packages.statement_engine.period import balances_reconcile, filter_and_summarize


def _txn(day, source="a.csv", debit=0.0, credit=0.0, index=0):
    return Transaction(
        date=day,
        description="line",
        debit=debit,
        credit=credit,
        source_file=source,
        original_index=index,
    )


def test_two_files_merge_openings():
    """Openings 1000 + 2000, one credit and one debit inside the period."""
    txns = [
        _txn(date(2024, 2, 10), "a.csv", credit=500.0),
        _txn(date(2024, 2, 15), "b.csv", debit=200.0),
    ]
    result = filter_and_summarize(
        txns, "2024-02-01", "2024-02-29", opening_balances={"a.csv": 1000.0, "b.csv": 2000.0}
    )
    summary = result.summary
    assert summary.opening_balance == 3000.0
    assert summary.total_deposits == 500.0
    assert summary.total_withdrawals == 200.0
    assert summary.closing_balance == 3300.0
    assert summary.statement_period == "2024-02-01 to 2024-02-29"
    assert balances_reconcile(summary)


def test_activity_before_period_moves_opening_balance():
    txns = [
        _txn(date(2024, 3, 1), credit=999.0, index=3),
        _txn(date(2024, 2, 10), debit=50.0, index=2),
        _txn(date(2024, 1, 15), credit=100.0, index=1),
    ]
    result = filter_and_summarize(
        txns, date(2024, 2, 1), date(2024, 2, 29), opening_balances={"a.csv": 1000.0}
    )
    assert [t.original_index for t in result.transactions] == [2]
    assert result.summary.opening_balance == 1100.0
    assert result.summary.closing_balance == 1050.0


def test_bounds_are_inclusive():
    txns = [
        _txn(date(2024, 1, 31), credit=1.0, index=0),
        _txn(date(2024, 2, 1), credit=2.0, index=1),
        _txn(date(2024, 2, 29), credit=3.0, index=2),
        _txn(date(2024, 3, 1), credit=4.0, index=3),
    ]
    result = filter_and_summarize(txns, "2024-02-01", "2024-02-29")
    assert [t.original_index for t in result.transactions] == [1, 2]
    for t in result.transactions:
        assert date(2024, 2, 1) <= t.date <= date(2024, 2, 29)


def test_unparseable_dates_fail_open():
    smudged = _txn("??", debit=10.0, index=5)
    txns = [_txn(date(2024, 2, 3), credit=20.0, index=1), smudged]
    result = filter_and_summarize(txns, "2024-02-01", "2024-02-29")

    assert result.transactions[-1] is smudged
    assert result.unparsed == [smudged]
    assert result.summary.total_withdrawals == 10.0


def test_unbounded_period_keeps_everything():
    txns = [_txn(date(2020, 1, 1), credit=5.0), _txn(date(2030, 1, 1), debit=2.0)]
    result = filter_and_summarize(txns)
    assert len(result.transactions) == 2
    assert result.summary.closing_balance == 3.0
    assert result.summary.opening_balance == 0.0
    assert result.summary.statement_period == ""


@pytest.mark.parametrize(
    "txns",
    [
        [],
        [_txn(date(2024, 2, 2), credit=10.5)],
        [_txn(date(2024, 1, 1), debit=7.25), _txn(date(2024, 2, 2), credit=0.1, index=1), _txn("x", debit=3.3, index=2)],
    ],
)
def test_summary_identity_always_holds(txns):
    result = filter_and_summarize(txns, "2024-02-01", "2024-02-29", opening_balances={"a.csv": 123.45})
    assert balances_reconcile(result.summary)


def test_start_after_end_rejected():
    with pytest.raises(ValueError):
        filter_and_summarize([], "2024-03-01", "2024-02-01")


def test_unparseable_bound_rejected():
    with pytest.raises(ValueError):
        filter_and_summarize([], "someday", None)
