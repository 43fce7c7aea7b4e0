from __future__ import annotations

import datetime as dt
from uuid import UUID

from pydantic import BaseModel, Field


class PatientCreateRequest(BaseModel):
    name: str | None = Field(default=None, max_length=255)
    phone: str = Field(min_length=8, max_length=40)
    email: str | None = Field(default=None, max_length=255)
    observations: str | None = None


class PatientUpdateRequest(BaseModel):
    name: str | None = Field(default=None, max_length=255)
    email: str | None = Field(default=None, max_length=255)
    status: str | None = Field(default=None, min_length=1, max_length=40)
    observations: str | None = None


class PatientResponse(BaseModel):
    id: str
    name: str | None
    phone: str
    email: str | None = None
    status: str | None = None
    created_at: str


class AppointmentCreateRequest(BaseModel):
    patient_id: UUID | None = None
    patient_name: str = Field(min_length=1, max_length=255)
    date: dt.date
    time: dt.time
    type: str = Field(min_length=1, max_length=80)
    observations: str | None = None


class AppointmentUpdateRequest(BaseModel):
    patient_name: str | None = Field(default=None, min_length=1, max_length=255)
    date: dt.date | None = None
    time: dt.time | None = None
    type: str | None = Field(default=None, min_length=1, max_length=80)
    status: str | None = Field(default=None, min_length=1, max_length=40)
    observations: str | None = None


class AppointmentResponse(BaseModel):
    id: str
    patient_id: str | None = None
    patient_name: str
    date: str
    time: str
    type: str
    status: str | None = None
    created_at: str
