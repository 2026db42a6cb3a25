from sqlalchemy import Column, Integer, String

from app.database import Base


class WorkType(Base):
    __tablename__ = "work_types"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String, nullable=False, unique=True)
    description = Column(String, nullable=True)
