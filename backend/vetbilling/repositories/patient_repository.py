from uuid import UUID

from sqlalchemy.orm import Session

from vetbilling.models.patient import Patient
from vetbilling.schemas.patient import PatientCreate


class PatientRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, patient_id: UUID) -> Patient | None:
        return self.db.query(Patient).filter(Patient.id == patient_id).first()

    def get_by_owner_id(self, owner_id: UUID) -> list[Patient]:
        return (
            self.db.query(Patient)
            .filter(Patient.owner_id == owner_id)
            .order_by(Patient.name.asc())
            .all()
        )

    def create(self, data: PatientCreate) -> Patient:
        patient = Patient(owner_id=data.owner_id, name=data.name, species=data.species)
        self.db.add(patient)
        self.db.commit()
        self.db.refresh(patient)
        return patient
