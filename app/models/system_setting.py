from sqlalchemy import Column, DateTime, String, Text, func

from app.database import Base

COMPANY_SETTING_KEYS = ("company_name", "company_address", "company_email")


class SystemSetting(Base):
    __tablename__ = "system_settings"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=True)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
