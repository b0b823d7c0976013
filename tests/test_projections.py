"""Tests for installment series consolidation, monthly projections and the hybrid merge."""

from __future__ import annotations

import pandas as pd
import pytest

from analytics.forecasting import calculate_monthly_projections, project_future_invoices
from analytics.hybrid import calculate_hybrid_invoices
from analytics.invoice_cycle import reconstruct_invoice_cycle
from analytics.series import consolidate_installment_series


def txn(description, amount, when, account_type="CREDIT", txn_id=None):
    return {
        "id": txn_id or f"{description}-{when}",
        "description": description,
        "amount": amount,
        "date": when,
        "accountType": account_type,
    }


@pytest.fixture()
def april_ledger() -> list[dict]:
    return [
        txn("NETFLIX.COM", 55.90, "2024-01-08"),
        txn("NETFLIX.COM", 55.90, "2024-02-08"),
        txn("NETFLIX.COM", 55.90, "2024-03-08"),
        txn("PAGAMENTO RECEBIDO", -800.0, "2024-04-10"),
        txn("NETFLIX.COM", 55.90, "2024-04-12"),
        txn("NOTEBOOK 3/10", 250.0, "2024-04-15"),
        txn("PADARIA", 30.5, "2024-04-16"),
        txn("ESTORNO PADARIA", -10.5, "2024-04-17"),
    ]


def test_progressing_observations_consolidate_into_one_series():
    transactions = [
        txn("LOJA X 2/12", 100.0, "2024-02-10"),
        txn("LOJA X 5/12", 100.0, "2024-05-10"),
    ]

    series = consolidate_installment_series(transactions)

    assert len(series) == 1
    assert series[0].current == 5
    assert series[0].remaining == 7
    assert series[0].first_parcel_date == pd.Timestamp("2024-01-10")
    assert series[0].transaction_id == "LOJA X 5/12-2024-05-10"


def test_earlier_parcel_after_later_one_starts_new_series():
    transactions = [
        txn("LOJA X 5/12", 100.0, "2024-05-10"),
        txn("LOJA X 2/12", 100.0, "2024-02-10"),
    ]

    series = consolidate_installment_series(transactions)

    assert sorted(entry.current for entry in series) == [2, 5]


def test_first_installment_always_opens_a_series():
    transactions = [txn("TENIS 1/3", 150.0, "2024-01-05", txn_id="a"), txn("TENIS 1/3", 150.0, "2024-01-05", txn_id="b")]

    series = consolidate_installment_series(transactions)

    assert len(series) == 2


def test_different_start_dates_are_different_purchases():
    transactions = [
        txn("TV 3/6", 400.0, "2024-03-10"),
        txn("TV 3/6", 400.0, "2024-04-20"),
    ]

    series = consolidate_installment_series(transactions)

    assert len(series) == 2


def test_key_includes_amount_and_term():
    transactions = [
        txn("TV 2/6", 400.0, "2024-02-10"),
        txn("TV 3/6", 410.0, "2024-03-10"),
        txn("TV 3/10", 400.0, "2024-03-10"),
        txn("TV 4/6", 400.004, "2024-04-10"),
    ]

    series = consolidate_installment_series(transactions)

    assert len(series) == 3
    assert sorted((entry.total, entry.current) for entry in series) == [(6, 3), (6, 4), (10, 3)]


def test_finished_series_and_refunds_are_ignored():
    transactions = [
        txn("SOFA 6/6", 300.0, "2024-06-01"),
        txn("ESTORNO SOFA 2/6", -300.0, "2024-02-03"),
        txn("CURSO 2/4", 90.0, "2024-02-01", account_type="CHECKING"),
    ]

    assert consolidate_installment_series(transactions) == []


def test_same_terms_within_a_day_merge_even_if_distinct_purchases():
    # Accepted limitation: indistinguishable purchases collapse into one series
    transactions = [
        txn("FONE 2/6", 120.0, "2024-02-10T14:00:00", txn_id="first-purchase"),
        txn("FONE 3/6", 120.0, "2024-03-10T09:00:00", txn_id="second-purchase"),
    ]

    series = consolidate_installment_series(transactions)

    assert len(series) == 1
    assert series[0].current == 3


def test_updated_series_takes_newest_amount():
    transactions = [
        txn("TV 2/6", 400.001, "2024-02-10"),
        txn("TV 3/6", 400.004, "2024-03-10"),
    ]

    series = consolidate_installment_series(transactions)

    assert len(series) == 1
    assert series[0].current == 3
    assert series[0].amount == 400.004


def test_series_trace_events():
    events = []
    transactions = [txn("LOJA X 2/12", 100.0, "2024-02-10"), txn("LOJA X 3/12", 100.0, "2024-03-10")]

    consolidate_installment_series(transactions, trace=events.append)

    assert [event.name for event in events] == ["series.created", "series.updated", "series.count"]
    assert events[-1].fields["total"] == 1


def test_projection_stops_after_last_parcel():
    transactions = [txn("NOTEBOOK 10/12", 300.0, "2024-03-15")]

    projections = project_future_invoices(transactions, months=6, reference_date="2024-03-20")

    assert [p["month_key"] for p in projections] == ["2024-03", "2024-04", "2024-05", "2024-06", "2024-07", "2024-08"]
    assert projections[0]["installments"] == []
    assert [i["parcel"] for i in projections[1]["installments"]] == ["11/12"]
    assert [i["parcel"] for i in projections[2]["installments"]] == ["12/12"]
    assert all(p["installments"] == [] for p in projections[3:])
    assert projections[1]["month"] == "abril de 2024"


def test_projection_totals_match_breakdown(april_ledger):
    projections = project_future_invoices(april_ledger, months=12, reference_date="2024-04-20")

    for projection in projections[1:]:
        breakdown = projection["breakdown"]
        assert projection["total"] == breakdown["installments_total"] + breakdown["recurring_total"]
    assert projections[1]["total"] == pytest.approx(250.0 + 55.90)


def test_inactive_recurring_is_not_projected():
    transactions = [
        txn("ACADEMIA", 100.0, "2023-10-03"),
        txn("ACADEMIA", 100.0, "2023-11-03"),
        txn("ACADEMIA", 100.0, "2023-12-03"),
    ]

    projections = project_future_invoices(transactions, months=3, reference_date="2024-06-01")

    assert all(p["recurring"] == [] and p["total"] == 0.0 for p in projections)


def test_empty_history_projects_zero_months():
    projections = project_future_invoices([], months=3, reference_date="2024-01-10")

    assert len(projections) == 3
    assert all(p["total"] == 0.0 and p["installments"] == [] for p in projections)


def test_monthly_projections_current_month_uses_open_cycle(april_ledger):
    result = calculate_monthly_projections(april_ledger, reference_date="2024-04-20")

    current = result["current_month"]
    assert current["month_key"] == "2024-04"
    assert current["month"] == "abril de 2024"
    assert current["total"] == pytest.approx(55.90 + 250.0 + 30.5 - 10.5)
    assert [i["parcel"] for i in current["installments"]] == ["3/10"]
    assert [r["description"] for r in current["recurring"]] == ["NETFLIX.COM"]
    assert current["recurring"][0]["last_occurrence"] == "2024-04"
    assert current["breakdown"]["installments_total"] == pytest.approx(250.0)
    assert current["breakdown"]["recurring_total"] == pytest.approx(55.90)


def test_monthly_projections_future_months(april_ledger):
    result = calculate_monthly_projections(april_ledger, reference_date="2024-04-20")

    future = result["future_months"]
    assert len(future) == 11
    assert future[0]["month_key"] == "2024-05"
    assert future[6]["month_key"] == "2024-11"
    assert [i["parcel"] for i in future[6]["installments"]] == ["10/10"]
    assert future[7]["installments"] == []
    assert future[7]["total"] == pytest.approx(55.90)


def test_hybrid_invoices_merge_bills_and_open_cycle(april_ledger):
    bills = [
        {"dueDate": "2024-02-15T00:00:00.000Z", "totalAmount": 1200.5, "lineItems": [{}, {}]},
        {"dueDate": "2024-03-15", "totalAmount": 980.0},
        {"totalAmount": 10.0},
        {"dueDate": "2024-01-15"},
        {"dueDate": "garbage", "totalAmount": 5.0},
        None,
    ]

    invoices = calculate_hybrid_invoices(april_ledger, bills, reference_date="2024-04-20")

    assert [(i["mes_key"], i["fonte"]) for i in invoices] == [
        ("2024-04", "calculado"),
        ("2024-03", "bill"),
        ("2024-02", "bill"),
    ]
    calculated, march, february = invoices
    assert calculated["valor"] == pytest.approx(325.90)
    assert calculated["transacoes"] == 4
    assert calculated["ano"] == 2024
    assert february["valor"] == 1200.5
    assert february["transacoes"] == 2
    assert february["detalhes"] == "Fatura fechada com 2 itens"
    assert february["mes"] == "fevereiro de 2024"
    assert march["transacoes"] == 0


def test_hybrid_reuses_given_cycle(april_ledger):
    cycle = reconstruct_invoice_cycle(april_ledger)
    events = []

    invoices = calculate_hybrid_invoices(april_ledger, [], reference_date="2024-04-20", cycle=cycle, trace=events.append)

    assert invoices[0]["valor"] == pytest.approx(325.90)
    assert not any(event.name.startswith("invoice_cycle.") for event in events)


def test_hybrid_keeps_bill_and_calculated_entry_for_same_month(april_ledger):
    bills = [
        {"dueDate": "2024-04-05", "totalAmount": 0},
        {"dueDate": "2023-12-05", "totalAmount": 640.0},
    ]

    invoices = calculate_hybrid_invoices(april_ledger, bills, reference_date="2024-04-20")

    assert len(invoices) == len(bills) + 1
    april = [i for i in invoices if i["mes_key"] == "2024-04"]
    assert sorted(i["fonte"] for i in april) == ["bill", "calculado"]
    assert invoices[-1]["mes_key"] == "2023-12"
