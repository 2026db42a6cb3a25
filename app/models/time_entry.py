from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, String, Text, func

from app.database import Base


class TimeEntry(Base):
    __tablename__ = "time_entries"

    __table_args__ = (
        CheckConstraint("minutes_spent > 0", name="ck_time_entries_minutes_spent_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)

    client_id = Column(
        Integer,
        ForeignKey("clients.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    work_type_id = Column(
        Integer,
        ForeignKey("work_types.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    project_name = Column(String, nullable=True)
    work_date = Column(Date, nullable=False, index=True)
    minutes_spent = Column(Integer, nullable=False)
    detail = Column(Text, nullable=True)

    # set once when claimed by an invoice; the entry is frozen from then on
    invoice_id = Column(
        Integer,
        ForeignKey("invoices.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
