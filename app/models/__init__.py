from app.models.client import Client
from app.models.invoice import Invoice, InvoiceLine
from app.models.payment import Payment, PaymentApplication
from app.models.system_setting import SystemSetting
from app.models.time_entry import TimeEntry
from app.models.work_type import WorkType

__all__ = [
    "Client",
    "Invoice",
    "InvoiceLine",
    "Payment",
    "PaymentApplication",
    "SystemSetting",
    "TimeEntry",
    "WorkType",
]
