from sqlalchemy import Column, DateTime, String, func

from vetbilling.core.database import Base
from vetbilling.models.shared import UUIDType, generate_uuid


class Owner(Base):
    """Pet owner - the party invoices are billed to."""

    __tablename__ = "owners"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    contact = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
