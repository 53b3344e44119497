"""Owner credit account - prepaid USD balance usable against any invoice."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, func

from vetbilling.core.database import Base
from vetbilling.models.shared import MONEY, UUIDType, generate_uuid


class OwnerCreditAccount(Base):
    """Owner-level credit balance in USD.

    The balance is drawn by payments that use credit and refunded when such a
    payment is cancelled. It never goes negative.
    """

    __tablename__ = "owner_credit_accounts"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    owner_id = Column(
        UUIDType,
        ForeignKey("owners.id", ondelete="RESTRICT"),
        nullable=False,
        unique=True,
        index=True,
    )
    balance_usd = Column(MONEY, nullable=False, default=0)
    version = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __mapper_args__ = {"version_id_col": version}
