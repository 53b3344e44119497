"""Payment method repository for data access."""

from uuid import UUID

from sqlalchemy.orm import Session

from vetbilling.models.payment_method import PaymentMethod
from vetbilling.schemas.payment_method import PaymentMethodCreate, PaymentMethodUpdate


class PaymentMethodRepository:
    """Repository for PaymentMethod model."""

    def __init__(self, db: Session):
        self.db = db

    def get_all(self, active_only: bool = False) -> list[PaymentMethod]:
        """Get all payment methods, optionally only active ones."""
        query = self.db.query(PaymentMethod)
        if active_only:
            query = query.filter(PaymentMethod.is_active.is_(True))
        return query.order_by(PaymentMethod.name.asc()).all()

    def get_by_id(self, payment_method_id: UUID) -> PaymentMethod | None:
        """Get a payment method by ID."""
        return self.db.query(PaymentMethod).filter(PaymentMethod.id == payment_method_id).first()

    def create(self, data: PaymentMethodCreate) -> PaymentMethod:
        """Create a new payment method."""
        method = PaymentMethod(
            name=data.name,
            description=data.description,
            currency=data.currency.value,
            payment_mode=data.payment_mode.value,
            requires_reference=data.requires_reference,
        )
        self.db.add(method)
        self.db.commit()
        self.db.refresh(method)
        return method

    def update(self, payment_method_id: UUID, data: PaymentMethodUpdate) -> PaymentMethod | None:
        """Update a payment method."""
        method = self.get_by_id(payment_method_id)
        if not method:
            return None

        update_data = data.model_dump(exclude_unset=True)
        for key in ("currency", "payment_mode"):
            if update_data.get(key) is not None:
                update_data[key] = update_data[key].value

        for key, value in update_data.items():
            setattr(method, key, value)

        self.db.commit()
        self.db.refresh(method)
        return method

    def deactivate(self, payment_method_id: UUID) -> PaymentMethod | None:
        """Deactivate a payment method (soft delete).

        Payments keep referencing it, so rows are never removed.
        """
        method = self.get_by_id(payment_method_id)
        if not method:
            return None
        if not method.is_active:
            return method

        method.is_active = False  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(method)
        return method
