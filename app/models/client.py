from sqlalchemy import CheckConstraint, Column, DateTime, Integer, Numeric, String, func

from app.database import Base


class Client(Base):
    __tablename__ = "clients"

    __table_args__ = (
        CheckConstraint("hourly_rate_cents >= 0", name="ck_clients_hourly_rate_cents_nonnegative"),
        CheckConstraint(
            "discount_percent >= 0 AND discount_percent <= 100",
            name="ck_clients_discount_percent_range",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)

    type = Column(String, nullable=False, default="business")
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True)

    hourly_rate_cents = Column(Integer, nullable=False)
    discount_percent = Column(Numeric(5, 2), nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
