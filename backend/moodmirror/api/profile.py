"""
Profile API endpoints - elder and doctor profiles.
"""

import logging

from fastapi import APIRouter, Depends

from ..models import DoctorProfile, DoctorProfileIn, ElderProfile, ElderProfileIn
from ..storage import RecordStore, get_record_store
from ..utils.auth import get_current_user_id

logger = logging.getLogger(__name__)

router = APIRouter(tags=["profile"])


def _dump(model):
    return model.to_store() if model is not None else None


@router.post("/elder-info")
async def save_elder_info(
    elder_info: ElderProfileIn,
    user_id: str = Depends(get_current_user_id),
    records: RecordStore = Depends(get_record_store),
):
    """Save the elder profile, replacing any earlier one."""
    profile = ElderProfile(**elder_info.model_dump())
    await records.save_profile(user_id, profile)
    logger.info(f"Elder profile saved for user {user_id}")
    return {"success": True, "message": "Elder information saved successfully"}


@router.get("/elder-info")
async def get_elder_info(
    user_id: str = Depends(get_current_user_id),
    records: RecordStore = Depends(get_record_store),
):
    """Elder profile (null for doctors) and basic info."""
    return {
        "success": True,
        "elderInfo": _dump(await records.get_elder_profile(user_id)),
        "basicInfo": _dump(await records.get_basic_info(user_id)),
    }


@router.post("/doctor-info")
async def save_doctor_info(
    doctor_info: DoctorProfileIn,
    user_id: str = Depends(get_current_user_id),
    records: RecordStore = Depends(get_record_store),
):
    profile = DoctorProfile(**doctor_info.model_dump())
    await records.save_profile(user_id, profile)
    logger.info(f"Doctor profile saved for user {user_id}")
    return {"success": True, "message": "Doctor information saved successfully"}


@router.get("/doctor-info")
async def get_doctor_info(
    user_id: str = Depends(get_current_user_id),
    records: RecordStore = Depends(get_record_store),
):
    return {
        "success": True,
        "doctorInfo": _dump(await records.get_doctor_profile(user_id)),
        "basicInfo": _dump(await records.get_basic_info(user_id)),
    }


@router.get("/user-profile")
async def get_user_profile(
    user_id: str = Depends(get_current_user_id),
    records: RecordStore = Depends(get_record_store),
):
    """
    Whichever profile the user has, with its role.

    Profiles saved without a role are treated as elder profiles.
    """
    profile = await records.get_raw_profile(user_id)
    basic = await records.get_basic_info(user_id)
    return {
        "success": True,
        "hasProfile": profile is not None,
        "role": profile.get("role", "elder") if profile else None,
        "profile": profile,
        "basicInfo": _dump(basic),
    }
