"""
Profile Models - Basic account info plus the elder and doctor profiles.
"""

from datetime import datetime, timezone
from typing import Optional, List, Literal
from pydantic import EmailStr, Field, field_validator

from .records import RecordModel


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class BasicInfo(RecordModel):
    """Contact details captured at sign-up."""
    email: str
    name: str
    phone: Optional[str] = None
    created_at: str = Field(default_factory=_utc_now_iso, alias="createdAt")


class ElderProfileIn(RecordModel):
    """Elder profile form. Every field is optional; guardian email is needed for reports."""
    age: Optional[str] = None
    gender: Optional[str] = None
    blood_group: Optional[str] = Field(default=None, alias="bloodGroup")
    disability: Optional[str] = None

    # Medical information
    medical_conditions: List[str] = Field(default_factory=list, alias="medicalConditions")
    other_conditions: Optional[str] = Field(default=None, alias="otherConditions")
    current_medications: Optional[str] = Field(default=None, alias="currentMedications")
    tablet_name: Optional[str] = Field(default=None, alias="tabletName")
    tablet_frequency: Optional[str] = Field(default=None, alias="tabletFrequency")
    medication_notes: Optional[str] = Field(default=None, alias="medicationNotes")

    # Contacts
    guardian_name: Optional[str] = Field(default=None, alias="guardianName")
    guardian_email: Optional[EmailStr] = Field(default=None, alias="guardianEmail")
    guardian_phone: Optional[str] = Field(default=None, alias="guardianPhone")
    clinic_email: Optional[EmailStr] = Field(default=None, alias="clinicEmail")
    emergency_contact: Optional[str] = Field(default=None, alias="emergencyContact")

    @field_validator("age", mode="before")
    @classmethod
    def _age_as_text(cls, value):
        return str(value) if isinstance(value, int) else value

    @field_validator("guardian_email", "clinic_email", mode="before")
    @classmethod
    def _blank_email_is_none(cls, value):
        if isinstance(value, str):
            return value.strip() or None
        return value


class ElderProfile(ElderProfileIn):
    role: Literal["elder"] = "elder"
    updated_at: str = Field(default_factory=_utc_now_iso, alias="updatedAt")


class DoctorProfileIn(RecordModel):
    specialty: Optional[str] = None
    license_number: Optional[str] = Field(default=None, alias="licenseNumber")
    hospital: Optional[str] = None
    phone: Optional[str] = None
    years_of_experience: Optional[str] = Field(default=None, alias="yearsOfExperience")

    @field_validator("years_of_experience", mode="before")
    @classmethod
    def _years_as_text(cls, value):
        return str(value) if isinstance(value, int) else value


class DoctorProfile(DoctorProfileIn):
    role: Literal["doctor"] = "doctor"
    updated_at: str = Field(default_factory=_utc_now_iso, alias="updatedAt")
