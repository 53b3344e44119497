from sqlalchemy import Column, DateTime, ForeignKey, String, func

from vetbilling.core.database import Base
from vetbilling.models.shared import UUIDType, generate_uuid


class Patient(Base):
    __tablename__ = "patients"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    owner_id = Column(
        UUIDType, ForeignKey("owners.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    name = Column(String(255), nullable=False)
    species = Column(String(100), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
