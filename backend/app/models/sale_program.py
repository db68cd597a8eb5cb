from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey, Text, JSON
from sqlalchemy.ext.mutable import MutableList
from sqlalchemy.sql import func
from app.core.database import Base


class SaleProgram(Base):
    __tablename__ = "sale_programs"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    # Ordered discount ids; paired with Discount.program_id
    discounts = Column(MutableList.as_mutable(JSON), nullable=False, default=list)
    banner_image = Column(String(500), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Optimistic lock: a flush against a row another session already changed raises StaleDataError
    version = Column(Integer, nullable=False, default=1)
    __mapper_args__ = {"version_id_col": version}
