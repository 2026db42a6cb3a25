import json
import logging
from datetime import date

from app.core.logging import JsonFormatter
from app.services import invoice_service
from app.tests.factories import add_time_entry, make_client, make_work_type


def test_json_formatter_includes_extras():
    record = logging.LogRecord("app.services.invoice_service", logging.INFO, __file__, 1, "invoice_created", None, None)
    record.invoice_id = 7
    record.total_cents = 47250

    payload = json.loads(JsonFormatter().format(record))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "app.services.invoice_service"
    assert payload["message"] == "invoice_created"
    assert payload["extra"] == {"invoice_id": 7, "total_cents": 47250}


def test_invoice_creation_is_logged_with_totals(db, caplog):
    client = make_client(db, discount_percent=10)
    wt = make_work_type(db)
    add_time_entry(db, client, wt, date(2024, 1, 5), 210)

    with caplog.at_level(logging.INFO, logger="app.services.invoice_service"):
        invoice = invoice_service.create_invoice_from_time_entries(
            client.id, "2024-01-01", "2024-01-31", 1, "2024-02-01", "2024-03-01", db=db
        )

    records = [r for r in caplog.records if r.getMessage() == "invoice_created_from_time_entries"]
    assert len(records) == 1
    assert records[0].invoice_id == invoice["id"]
    assert records[0].claimed_entries == 1
    assert records[0].total_cents == 47250
