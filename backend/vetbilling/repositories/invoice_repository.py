from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from vetbilling.core.money import quantize_money
from vetbilling.models.invoice import Invoice, InvoiceStatus
from vetbilling.models.shared import utc_now
from vetbilling.schemas.invoice import InvoiceCreate

OUTSTANDING_STATUSES = (InvoiceStatus.PENDING, InvoiceStatus.PARTIAL)


class InvoiceRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        owner_id: UUID | None = None,
        patient_id: UUID | None = None,
        statuses: list[InvoiceStatus] | tuple[InvoiceStatus, ...] | None = None,
    ) -> list[Invoice]:
        query = self.db.query(Invoice)

        if owner_id:
            query = query.filter(Invoice.owner_id == owner_id)
        if patient_id:
            query = query.filter(Invoice.patient_id == patient_id)
        if statuses:
            query = query.filter(Invoice.status.in_([s.value for s in statuses]))

        return query.order_by(Invoice.created_at.desc()).offset(skip).limit(limit).all()

    def get_outstanding(
        self, owner_id: UUID | None = None, patient_id: UUID | None = None
    ) -> list[Invoice]:
        """Pending and partially paid invoices of an owner or a patient."""
        query = self.db.query(Invoice).filter(
            Invoice.status.in_([s.value for s in OUTSTANDING_STATUSES])
        )
        if owner_id:
            query = query.filter(Invoice.owner_id == owner_id)
        if patient_id:
            query = query.filter(Invoice.patient_id == patient_id)
        return query.order_by(Invoice.created_at.asc()).all()

    def get_by_id(self, invoice_id: UUID, for_update: bool = False) -> Invoice | None:
        query = self.db.query(Invoice).filter(Invoice.id == invoice_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def create(self, data: InvoiceCreate) -> Invoice:
        if data.total is not None:
            total = data.total
        else:
            total = sum((item.cost * item.quantity for item in data.items), Decimal(0))

        invoice = Invoice(
            owner_id=data.owner_id,
            patient_id=data.patient_id,
            currency=data.currency.value,
            total=quantize_money(total),
            exchange_rate=data.exchange_rate_at_issue,
            amount_paid_usd=Decimal(0),
            amount_paid_local=Decimal(0),
            amount_paid_usd_equivalent=Decimal(0),
            status=InvoiceStatus.PENDING.value,
            items=[item.model_dump(mode="json") for item in data.items],
        )
        self.db.add(invoice)
        self.db.commit()
        self.db.refresh(invoice)
        return invoice

    def cancel(self, invoice_id: UUID) -> Invoice | None:
        """Cancel an invoice. Canceled is terminal: no further payments are accepted."""
        invoice = self.get_by_id(invoice_id, for_update=True)
        if not invoice:
            return None
        if invoice.status == InvoiceStatus.CANCELED.value:
            raise ValueError("Invoice is already canceled")

        invoice.status = InvoiceStatus.CANCELED.value  # type: ignore[assignment]
        invoice.canceled_at = utc_now()  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(invoice)
        return invoice
