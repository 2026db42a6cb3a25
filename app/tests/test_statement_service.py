from datetime import date, timedelta

import pytest

from app.core.errors import InvalidInputError, NotFoundError
from app.services import settings_service, statement_service
from app.tests.factories import apply_payment, make_client, make_invoice


def _statement(db, client, start="2024-01-01", end="2024-01-31"):
    return statement_service.calculate_statement(client.id, start, end, db=db)


def _ledger(statement):
    return [(t["type"], t["date"], t["document_number"], t["amount_cents"], t["running_balance_cents"]) for t in statement["transactions"]]


def _rows(statement):
    return [(t["document_number"], t["amount_cents"], t["running_balance_cents"]) for t in statement["transactions"]]


def test_statement_running_balance(db):
    client = make_client(db, name="Acme Corp")
    inv1 = make_invoice(db, client, 1, date(2023, 12, 15), 30000)
    apply_payment(db, date(2023, 12, 20), [(inv1, 10000)])

    inv2 = make_invoice(db, client, 2, date(2024, 1, 10), 40000)
    same_day = apply_payment(db, date(2024, 1, 10), [(inv2, 5000)])
    late = apply_payment(db, date(2024, 1, 25), [(inv1, 5000)], note="Check 1234")

    st = _statement(db, client)

    assert st["client_id"] == client.id
    assert st["client_name"] == "Acme Corp"
    assert st["start_date"] == "2024-01-01"
    assert st["end_date"] == "2024-01-31"
    assert st["beginning_balance_cents"] == 20000
    assert st["period_invoices_total_cents"] == 40000
    assert st["period_payments_total_cents"] == 10000
    assert st["ending_balance_cents"] == 50000

    assert _ledger(st) == [
        ("invoice", "2024-01-10", "INV-2", 40000, 60000),
        ("payment", "2024-01-10", f"PAY-{same_day.id}", -5000, 55000),
        ("payment", "2024-01-25", f"PAY-{late.id}", -5000, 50000),
    ]
    assert st["transactions"][0]["description"] == "Invoice 2"
    assert st["transactions"][1]["description"] == "Payment on Invoice 2"
    assert st["transactions"][2]["description"] == "Payment on Invoice 1 - Check 1234"
    assert st["transactions"][2]["invoice_number"] == 1
    assert st["transactions"][2]["payment_note"] == "Check 1234"


def test_ending_balance_identity(db):
    client = make_client(db)
    inv = make_invoice(db, client, 1, date(2024, 1, 3), 12345)
    make_invoice(db, client, 2, date(2024, 1, 4), 555)
    apply_payment(db, date(2024, 1, 5), [(inv, 345)])

    st = _statement(db, client)

    assert st["ending_balance_cents"] == (
        st["beginning_balance_cents"] + st["period_invoices_total_cents"] - st["period_payments_total_cents"]
    )
    assert st["transactions"][-1]["running_balance_cents"] == st["ending_balance_cents"]


def test_same_day_ordering(db):
    client = make_client(db)
    day = date(2024, 1, 15)

    inv5 = make_invoice(db, client, 5, day, 500)
    inv3 = make_invoice(db, client, 3, day, 300)
    split = apply_payment(db, day, [(inv5, 100), (inv3, 50)])
    make_invoice(db, client, 9, date(2024, 1, 14), 900)

    st = _statement(db, client)

    docs = [t["document_number"] for t in st["transactions"]]
    assert docs == ["INV-9", "INV-3", "INV-5", f"PAY-{split.id}", f"PAY-{split.id}"]
    # one row per application, in application order
    assert [t["invoice_number"] for t in st["transactions"][3:]] == [5, 3]
    assert [t["amount_cents"] for t in st["transactions"][3:]] == [-100, -50]


def test_beginning_balance_can_be_negative(db):
    client = make_client(db)
    inv = make_invoice(db, client, 1, date(2023, 12, 1), 1000)
    apply_payment(db, date(2023, 12, 5), [(inv, 1500)])

    assert statement_service.calculate_beginning_balance(client.id, "2024-01-01", db=db) == -500

    st = _statement(db, client)
    assert st["beginning_balance_cents"] == -500
    assert st["ending_balance_cents"] == -500
    assert st["transactions"] == []


def test_beginning_balance_uses_payment_date_not_invoice_date(db):
    client = make_client(db)
    inv = make_invoice(db, client, 1, date(2023, 12, 1), 1000)
    apply_payment(db, date(2024, 1, 2), [(inv, 400)])

    assert statement_service.calculate_beginning_balance(client.id, date(2024, 1, 1), db=db) == 1000

    st = _statement(db, client)
    assert st["beginning_balance_cents"] == 1000
    assert _ledger(st)[0][2].startswith("PAY-")
    assert st["transactions"][0]["invoice_number"] == 1
    assert st["ending_balance_cents"] == 600


def test_voided_invoices_and_their_payments_are_excluded(db):
    client = make_client(db)
    old_void = make_invoice(db, client, 1, date(2023, 12, 1), 7000, status="voided")
    apply_payment(db, date(2023, 12, 2), [(old_void, 2000)])
    new_void = make_invoice(db, client, 2, date(2024, 1, 5), 9000, status="voided")
    apply_payment(db, date(2024, 1, 6), [(new_void, 3000)])
    live = make_invoice(db, client, 3, date(2024, 1, 7), 1000)

    st = _statement(db, client)

    assert st["beginning_balance_cents"] == 0
    assert [t["invoice_id"] for t in st["transactions"]] == [live.id]
    assert st["ending_balance_cents"] == 1000


def test_prefix_sum_consistency_across_partition_points(db):
    client = make_client(db)
    a = make_invoice(db, client, 10, date(2024, 1, 3), 10000)
    b = make_invoice(db, client, 11, date(2024, 1, 20), 2500)
    apply_payment(db, date(2024, 1, 20), [(a, 4000)])
    c = make_invoice(db, client, 12, date(2024, 2, 14), 7777)
    apply_payment(db, date(2024, 2, 1), [(a, 6000), (b, 1000)])
    apply_payment(db, date(2024, 3, 1), [(c, 7777)])
    make_invoice(db, client, 13, date(2024, 2, 20), 3000, status="voided")

    start = date(2024, 1, 1)
    end = date(2024, 3, 31)
    whole = statement_service.calculate_statement(client.id, start.isoformat(), end.isoformat(), db=db)

    split = start + timedelta(days=1)
    while split <= end:
        left = statement_service.calculate_statement(
            client.id, start.isoformat(), (split - timedelta(days=1)).isoformat(), db=db
        )
        right = statement_service.calculate_statement(client.id, split.isoformat(), end.isoformat(), db=db)

        assert left["ending_balance_cents"] == right["beginning_balance_cents"], split
        assert right["ending_balance_cents"] == whole["ending_balance_cents"], split
        assert _rows(left) + _rows(right) == _rows(whole), split
        split += timedelta(days=1)

    assert whole["ending_balance_cents"] == 10000 + 2500 + 7777 - 4000 - 7000 - 7777


def test_statement_is_client_scoped(db):
    mine = make_client(db)
    theirs = make_client(db)
    my_inv = make_invoice(db, mine, 1, date(2024, 1, 5), 1000)
    their_inv = make_invoice(db, theirs, 2, date(2024, 1, 5), 2000)
    make_invoice(db, theirs, 3, date(2023, 12, 5), 9999)
    apply_payment(db, date(2024, 1, 9), [(my_inv, 100), (their_inv, 200)])

    st = _statement(db, mine)

    assert st["beginning_balance_cents"] == 0
    assert [t["amount_cents"] for t in st["transactions"]] == [1000, -100]
    assert st["ending_balance_cents"] == 900


def test_company_settings_on_statement(db):
    client = make_client(db)

    st = _statement(db, client)
    assert (st["company_name"], st["company_address"], st["company_email"]) == ("", "", "")

    settings_service.update_company_settings(
        {"company_name": "Ledger LLC", "company_address": "1 Main St", "company_email": None},
        db=db,
    )

    st = _statement(db, client)
    assert st["company_name"] == "Ledger LLC"
    assert st["company_address"] == "1 Main St"
    assert st["company_email"] == ""


@pytest.mark.parametrize(
    "start, end, message",
    [
        (None, "2024-01-31", "start_date and end_date are required"),
        ("2024-01-01", "", "start_date and end_date are required"),
        ("01/01/2024", "2024-01-31", "Dates must be in YYYY-MM-DD format"),
        ("2024-02-01", "2024-01-31", "start_date must be less than or equal to end_date"),
    ],
)
def test_range_validation_happens_before_client_lookup(db, start, end, message):
    with pytest.raises(InvalidInputError) as exc:
        statement_service.calculate_statement(999999, start, end, db=db)
    assert str(exc.value) == message


def test_unknown_client(db):
    with pytest.raises(NotFoundError):
        statement_service.calculate_statement(999999, "2024-01-01", "2024-01-31", db=db)


def test_single_day_range(db):
    client = make_client(db)
    make_invoice(db, client, 1, date(2024, 1, 31), 100)

    st = _statement(db, client, start="2024-01-31", end="2024-01-31")
    assert [t["document_number"] for t in st["transactions"]] == ["INV-1"]


def test_paid_in_full_within_period(db):
    client = make_client(db)
    inv = make_invoice(db, client, 1, date(2025, 1, 5), 50000)
    apply_payment(db, date(2025, 1, 20), [(inv, 50000)])

    st = _statement(db, client, start="2025-01-01", end="2025-01-31")

    assert st["beginning_balance_cents"] == 0
    assert st["ending_balance_cents"] == 0
    assert [(t["type"], t["running_balance_cents"]) for t in st["transactions"]] == [
        ("invoice", 50000),
        ("payment", 0),
    ]


def test_invoice_precedes_payment_on_same_day_regardless_of_ids(db):
    client = make_client(db)
    older = make_invoice(db, client, 1, date(2025, 1, 2), 100)
    apply_payment(db, date(2025, 1, 15), [(older, 100)])
    make_invoice(db, client, 2, date(2025, 1, 15), 700)

    st = _statement(db, client, start="2025-01-01", end="2025-01-31")

    assert [t["type"] for t in st["transactions"]] == ["invoice", "invoice", "payment"]
    assert [t["running_balance_cents"] for t in st["transactions"]] == [100, 800, 700]
