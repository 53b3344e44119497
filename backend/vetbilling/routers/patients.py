"""Patient API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from vetbilling.core.database import get_db
from vetbilling.models.patient import Patient
from vetbilling.repositories.owner_repository import OwnerRepository
from vetbilling.repositories.patient_repository import PatientRepository
from vetbilling.schemas.invoice import DebtSummaryResponse
from vetbilling.schemas.patient import PatientCreate, PatientResponse
from vetbilling.services.settlement_service import SettlementService

router = APIRouter()


@router.post("/", response_model=PatientResponse, status_code=201)
async def create_patient(
    data: PatientCreate,
    db: Session = Depends(get_db),
) -> Patient:
    if not OwnerRepository(db).get_by_id(data.owner_id):
        raise HTTPException(status_code=404, detail="Owner not found")
    return PatientRepository(db).create(data)


@router.get("/{patient_id}", response_model=PatientResponse)
async def get_patient(
    patient_id: UUID,
    db: Session = Depends(get_db),
) -> Patient:
    patient = PatientRepository(db).get_by_id(patient_id)
    if not patient:
        raise HTTPException(status_code=404, detail="Patient not found")
    return patient


@router.get("/{patient_id}/debt-summary", response_model=DebtSummaryResponse)
async def get_patient_debt_summary(
    patient_id: UUID,
    db: Session = Depends(get_db),
) -> DebtSummaryResponse:
    """Outstanding debt of a patient.

    Each invoice contributes its item costs scaled by the unpaid fraction,
    converted to USD.
    """
    if not PatientRepository(db).get_by_id(patient_id):
        raise HTTPException(status_code=404, detail="Patient not found")
    summary = SettlementService(db).get_debt_summary(patient_id=patient_id)
    return DebtSummaryResponse.from_summary(summary)
