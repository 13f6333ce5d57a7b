import pytest

from spending_insights.enrichment import enrich_transactions
from spending_insights.recurring import calculate_recurring_total, detect_recurring_expenses


def _mk_tx(tx_id, amount, when, description="Card payment", merchant=None):
    tx = {"id": tx_id, "amount": amount, "description": description, "date": when}
    if merchant is not None:
        tx["merchant"] = merchant
    return tx


def test_monthly_subscription_is_recurring():
    result = detect_recurring_expenses(
        [
            _mk_tx("n1", -9.99, "2024-01-15", "Netflix"),
            _mk_tx("n2", -9.99, "2024-02-15", "Netflix"),
        ]
    )
    assert len(result) == 1
    netflix = result[0]
    assert netflix.merchant == "Netflix"
    assert netflix.amount == pytest.approx(9.99)
    assert netflix.frequency == 2
    assert netflix.category == "Subscriptions"
    assert netflix.next_date == "2024-03-16T00:00:00"
    assert [c.id for c in netflix.transactions] == ["n1", "n2"]
    assert netflix.transactions[0].amount == pytest.approx(9.99)
    assert netflix.transactions[0].date == "2024-01-15"


def test_stable_grocery_spend_is_recurring():
    result = detect_recurring_expenses(
        [
            _mk_tx("t1", -40, "2024-01-03", "Tesco"),
            _mk_tx("t2", -42, "2024-02-03", "Tesco"),
            _mk_tx("t3", -39, "2024-03-03", "Tesco"),
        ]
    )
    assert len(result) == 1
    assert result[0].amount == pytest.approx(121 / 3)
    assert result[0].frequency == 3


def test_repeats_within_one_month_are_not_recurring():
    result = detect_recurring_expenses(
        [
            _mk_tx("a1", -15, "2024-01-03", "Amazon"),
            _mk_tx("a2", -15, "2024-01-20", "Amazon"),
        ]
    )
    assert result == []


def test_results_span_at_least_two_months():
    txs = [
        _mk_tx(f"{m}-{i}", -10, f"2024-{m:02d}-{d:02d}", merchant=f"Vendor {m}")
        for m in range(1, 5)
        for i, d in enumerate((1, 10, 20))
    ]
    txs += [_mk_tx("x1", -10, "2024-01-05", merchant="Gym"), _mk_tx("x2", -10, "2024-03-05", merchant="Gym")]
    for found in detect_recurring_expenses(txs, limit=None):
        months = {c.date[:7] for c in found.transactions}
        assert len(months) >= 2
        assert found.frequency == len(months)
    assert [r.merchant for r in detect_recurring_expenses(txs)] == ["Gym"]


def test_unstable_amounts_are_rejected_unless_threshold_allows():
    txs = [
        _mk_tx("v1", -10, "2024-01-01", merchant="Energy Co"),
        _mk_tx("v2", -30, "2024-02-01", merchant="Energy Co"),
    ]
    assert detect_recurring_expenses(txs) == []
    loose = detect_recurring_expenses(txs, max_variance_ratio=0.6)
    assert len(loose) == 1
    assert loose[0].amount == pytest.approx(20.0)


def test_monthly_totals_absorb_split_payments():
    result = detect_recurring_expenses(
        [
            _mk_tx("s1", -20, "2024-01-02", merchant="Landlord"),
            _mk_tx("s2", -20, "2024-01-16", merchant="Landlord"),
            _mk_tx("s3", -40, "2024-02-02", merchant="Landlord"),
        ]
    )
    assert len(result) == 1
    assert result[0].amount == pytest.approx(40.0)
    assert result[0].frequency == 2
    assert len(result[0].transactions) == 3


def test_min_transactions_threshold():
    txs = [
        _mk_tx("m1", -5, "2024-01-01", merchant="Cloud"),
        _mk_tx("m2", -5, "2024-02-01", merchant="Cloud"),
    ]
    assert detect_recurring_expenses(txs, min_transactions=3) == []
    assert len(detect_recurring_expenses(txs, min_transactions=2)) == 1


def test_limit_keeps_highest_amounts():
    txs = []
    for i in range(8):
        txs.append(_mk_tx(f"{i}a", -(i + 1), "2024-01-01", merchant=f"Vendor {i}"))
        txs.append(_mk_tx(f"{i}b", -(i + 1), "2024-02-01", merchant=f"Vendor {i}"))

    top = detect_recurring_expenses(txs)
    assert len(top) == 6
    assert [r.merchant for r in top] == [f"Vendor {i}" for i in range(7, 1, -1)]
    assert len(detect_recurring_expenses(txs, limit=None)) == 8
    assert detect_recurring_expenses(txs, limit=0) == []


def test_merchant_names_must_match_exactly():
    txs = [
        _mk_tx("e1", -9.99, "2024-01-15", merchant="NETFLIX.COM"),
        _mk_tx("e2", -9.99, "2024-02-15", merchant="Netflix"),
    ]
    assert detect_recurring_expenses(txs) == []


def test_credits_and_undated_expenses_are_ignored():
    txs = [
        _mk_tx("c1", 9.99, "2024-01-15", merchant="Netflix"),
        _mk_tx("c2", 9.99, "2024-02-15", merchant="Netflix"),
        {"id": "u1", "amount": -12, "merchant": "Phone Co"},
        _mk_tx("u2", -12, "2024-01-09", merchant="Phone Co"),
        _mk_tx("u3", -12, "2024-02-09", merchant="Phone Co"),
    ]
    result = detect_recurring_expenses(txs)
    assert [r.merchant for r in result] == ["Phone Co"]
    assert [c.id for c in result[0].transactions] == ["u2", "u3"]


@pytest.mark.usefixtures("cet_time")
def test_months_are_bucketed_in_local_time():
    # In UTC both charges fall in January; locally the second is in February.
    txs = [
        _mk_tx("b1", -9.99, "2024-01-10T12:00:00Z", merchant="Streamly"),
        _mk_tx("b2", -9.99, "2024-01-31T23:30:00Z", merchant="Streamly"),
    ]
    result = detect_recurring_expenses(txs)
    assert len(result) == 1
    assert result[0].frequency == 2
    assert result[0].next_date == "2024-03-02T00:30:00"


def test_accepts_enriched_views():
    enriched = enrich_transactions(
        [
            _mk_tx("n1", -9.99, "2024-01-15", "Netflix"),
            _mk_tx("n2", -9.99, "2024-02-15", "Netflix"),
        ]
    )
    assert len(detect_recurring_expenses(enriched)) == 1


def test_recurring_total():
    result = detect_recurring_expenses(
        [
            _mk_tx("n1", -10, "2024-01-15", merchant="Netflix"),
            _mk_tx("n2", -10, "2024-02-15", merchant="Netflix"),
            _mk_tx("g1", -30, "2024-01-05", merchant="Gym"),
            _mk_tx("g2", -30, "2024-02-05", merchant="Gym"),
        ]
    )
    assert calculate_recurring_total(result) == pytest.approx(40.0)
    assert calculate_recurring_total([]) == 0.0
