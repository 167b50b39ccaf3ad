"""
Request and response schemas for pill regimens
"""
from datetime import date, datetime
from typing import List, Optional
from pydantic import BaseModel, Field


class MedicineRequest(BaseModel):
    """A single medicine within a dosage and its active date window"""
    name: str = Field(..., description="Name of the medicine")
    start_date: date = Field(..., description="First day the medicine is taken")
    end_date: date = Field(..., description="Last day the medicine is taken")


class DosageRequest(BaseModel):
    """A daily reminder slot covering one or more medicines"""
    hour: int = Field(..., ge=0, le=23)
    minute: int = Field(..., ge=0, le=59)
    medicine_requests: List[MedicineRequest] = Field(default_factory=list)


class PillRegimenRequest(BaseModel):
    """Schema for creating or renewing a pill regimen"""
    external_id: str = Field(..., min_length=1, description="Patient/business identifier")
    reminder_repeat_window_in_minutes: int = Field(..., ge=0)
    reminder_repeat_count: int = Field(..., ge=0)
    dosage_requests: List[DosageRequest] = Field(default_factory=list)


class DosageResponse(BaseModel):
    dosage_id: str
    dosage_hour: int
    dosage_minute: int
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    medicines: List[str] = Field(default_factory=list)


class PillRegimenResponse(BaseModel):
    pill_regimen_id: str
    external_id: str
    reminder_repeat_window_in_minutes: int
    reminder_repeat_count: int
    dosages: List[DosageResponse] = Field(default_factory=list)


class MedicinesResponse(BaseModel):
    pill_regimen_id: str
    dosage_id: str
    medicines: List[str]


class NextDosageTimeResponse(BaseModel):
    pill_regimen_id: str
    current_dosage_id: str
    next_dosage_time: datetime
