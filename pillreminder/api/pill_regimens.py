from fastapi import APIRouter, Depends, Response, status

from pillreminder.schemas.pill_regimen import (
    DosageResponse,
    MedicinesResponse,
    NextDosageTimeResponse,
    PillRegimenRequest,
    PillRegimenResponse,
)
from pillreminder.services.pill_reminder_service import PillReminderService, to_pill_regimen_response
from .deps import get_pill_reminder_service


router = APIRouter()


@router.get("/health")
def health_check():
    return {"status": "healthy", "service": "pillreminder"}


@router.post("/", response_model=PillRegimenResponse, status_code=status.HTTP_201_CREATED)
def create_pill_regimen(
    payload: PillRegimenRequest,
    service: PillReminderService = Depends(get_pill_reminder_service),
):
    return to_pill_regimen_response(service.create_new(payload))


@router.put("/", response_model=PillRegimenResponse)
def renew_pill_regimen(
    payload: PillRegimenRequest,
    service: PillReminderService = Depends(get_pill_reminder_service),
):
    """Replace the regimen registered for payload.external_id."""
    return to_pill_regimen_response(service.renew(payload))


@router.get("/{pill_regimen_id}", response_model=PillRegimenResponse)
def get_pill_regimen(
    pill_regimen_id: str,
    service: PillReminderService = Depends(get_pill_reminder_service),
):
    return service.get_pill_regimen(pill_regimen_id)


@router.get("/{pill_regimen_id}/dosages/{dosage_id}/medicines", response_model=MedicinesResponse)
def medicines_for(
    pill_regimen_id: str,
    dosage_id: str,
    service: PillReminderService = Depends(get_pill_reminder_service),
):
    return MedicinesResponse(
        pill_regimen_id=pill_regimen_id,
        dosage_id=dosage_id,
        medicines=service.medicines_for(pill_regimen_id, dosage_id),
    )


@router.post("/{pill_regimen_id}/dosages/{dosage_id}/stop-today", status_code=status.HTTP_204_NO_CONTENT)
def stop_todays_reminders(
    pill_regimen_id: str,
    dosage_id: str,
    service: PillReminderService = Depends(get_pill_reminder_service),
):
    service.stop_todays_reminders(pill_regimen_id, dosage_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{pill_regimen_id}/dosages/{dosage_id}/previous", response_model=DosageResponse)
def get_previous_dosage(
    pill_regimen_id: str,
    dosage_id: str,
    service: PillReminderService = Depends(get_pill_reminder_service),
):
    return service.get_previous_dosage(pill_regimen_id, dosage_id)


@router.get("/{pill_regimen_id}/dosages/{dosage_id}/next-time", response_model=NextDosageTimeResponse)
def get_next_dosage_time(
    pill_regimen_id: str,
    dosage_id: str,
    service: PillReminderService = Depends(get_pill_reminder_service),
):
    return NextDosageTimeResponse(
        pill_regimen_id=pill_regimen_id,
        current_dosage_id=dosage_id,
        next_dosage_time=service.get_next_dosage_time(pill_regimen_id, dosage_id),
    )
