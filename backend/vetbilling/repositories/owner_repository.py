from uuid import UUID

from sqlalchemy.orm import Session

from vetbilling.models.owner import Owner
from vetbilling.schemas.owner import OwnerCreate


class OwnerRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_all(self, skip: int = 0, limit: int = 100) -> list[Owner]:
        return self.db.query(Owner).order_by(Owner.name.asc()).offset(skip).limit(limit).all()

    def get_by_id(self, owner_id: UUID) -> Owner | None:
        return self.db.query(Owner).filter(Owner.id == owner_id).first()

    def create(self, data: OwnerCreate) -> Owner:
        owner = Owner(name=data.name, contact=data.contact)
        self.db.add(owner)
        self.db.commit()
        self.db.refresh(owner)
        return owner
