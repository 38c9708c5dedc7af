"""
Guardian messaging API endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request

from ..channels import EmailClient, get_email_client
from ..core.messaging import GuardianMessenger
from ..models import GuardianMessageIn
from ..storage import RecordStore, get_record_store
from ..utils.auth import get_current_user_id

router = APIRouter(tags=["messages"])


def get_messenger(
    request: Request,
    records: RecordStore = Depends(get_record_store),
    email_client: Optional[EmailClient] = Depends(get_email_client),
) -> GuardianMessenger:
    return GuardianMessenger(records, email_client, request.app.state.record_locks)


@router.post("/send-guardian-message")
async def send_guardian_message(
    payload: GuardianMessageIn,
    user_id: str = Depends(get_current_user_id),
    messenger: GuardianMessenger = Depends(get_messenger),
):
    """
    Send a message about a patient to their guardian.

    Raises:
        NotFound: If the patient has no guardian email on file
    """
    message = await messenger.send_message(user_id, payload.patient_id, payload.message)
    return {"success": True, "message": "Message sent successfully", "messageId": message.id}


@router.get("/guardian-messages/{patient_id}")
async def get_guardian_messages(
    patient_id: str,
    user_id: str = Depends(get_current_user_id),
    messenger: GuardianMessenger = Depends(get_messenger),
):
    messages = await messenger.list_messages(patient_id)
    return {"success": True, "messages": [m.to_store() for m in messages]}
