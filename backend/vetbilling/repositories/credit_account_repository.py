"""Owner credit account repository for data access."""

from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from vetbilling.core.money import quantize_money
from vetbilling.models.credit_account import OwnerCreditAccount


class CreditAccountRepository:
    """Repository for OwnerCreditAccount model."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_owner_id(self, owner_id: UUID, for_update: bool = False) -> OwnerCreditAccount | None:
        """Get the credit account of an owner, optionally locking the row."""
        query = self.db.query(OwnerCreditAccount).filter(OwnerCreditAccount.owner_id == owner_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def create(self, owner_id: UUID, balance_usd: Decimal = Decimal("0")) -> OwnerCreditAccount:
        """Open a credit account with its opening balance."""
        if balance_usd < 0:
            raise ValueError("Opening balance cannot be negative")
        if self.get_by_owner_id(owner_id) is not None:
            raise ValueError(f"Owner {owner_id} already has a credit account")

        account = OwnerCreditAccount(owner_id=owner_id, balance_usd=quantize_money(balance_usd))
        self.db.add(account)
        self.db.commit()
        self.db.refresh(account)
        return account
