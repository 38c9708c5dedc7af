"""
Record Store - Typed access to per-user records over the key-value store.

Key layout (all per user, daily keys carry the ISO date):
    user:<id>:survey:<date>       MoodSurveyRecord
    user:<id>:camera:<date>       CameraMoodRecord
    user:<id>:completion:<date>   CompletionStatus
    user:<id>:report:<weekEnd>    ReportSendReceipt
    user:<id>:basic               BasicInfo
    user:<id>:profile             ElderProfile | DoctorProfile
    user:<id>:doctorInfo          DoctorProfile (mirror)
    account:<email>               Account
    message:<patientId>:<id>      GuardianMessage
    conversation:<patientId>:messages   ordered message ids
"""

import logging
from typing import Optional, List, Dict, Any, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError as PydanticValidationError

from .interface import KeyValueStore
from ..models import (
    Account, BasicInfo, CameraMoodRecord, CompletionStatus, DoctorProfile,
    ElderProfile, GuardianMessage, MoodSurveyRecord, ReportSendReceipt,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class RecordStore:
    """
    Validates records at the store boundary and owns the key namespace.
    Values are written by full overwrite; nothing here deletes records.
    """

    def __init__(self, store: KeyValueStore):
        """
        Initialize record store.

        Args:
            store: KeyValueStore implementation (LocalKVStore, InMemoryKVStore)
        """
        self.store = store

    # Keys

    @staticmethod
    def _user_key(user_id: str, *parts: str) -> str:
        return ":".join(("user", user_id) + parts)

    @classmethod
    def survey_key(cls, user_id: str, date: str) -> str:
        return cls._user_key(user_id, "survey", date)

    @classmethod
    def camera_key(cls, user_id: str, date: str) -> str:
        return cls._user_key(user_id, "camera", date)

    @classmethod
    def completion_key(cls, user_id: str, date: str) -> str:
        return cls._user_key(user_id, "completion", date)

    @classmethod
    def report_key(cls, user_id: str, week_end: str) -> str:
        return cls._user_key(user_id, "report", week_end)

    # Helpers

    async def _get_model(self, key: str, model: Type[ModelT]) -> Optional[ModelT]:
        value = await self.store.get(key)
        if value is None:
            return None
        try:
            return model.model_validate(value)
        except PydanticValidationError as e:
            logger.warning(f"Ignoring malformed record at {key}: {e.error_count()} error(s)")
            return None

    async def _scan_models(self, prefix: str, model: Type[ModelT]) -> List[ModelT]:
        records = []
        for value in await self.store.get_by_prefix(prefix):
            try:
                records.append(model.model_validate(value))
            except PydanticValidationError as e:
                logger.warning(f"Skipping malformed record under {prefix}: {e.error_count()} error(s)")
        return records

    async def _put(self, key: str, record: BaseModel) -> None:
        await self.store.set(key, record.model_dump(by_alias=True, mode="json"))

    # Surveys

    async def save_survey(self, user_id: str, record: MoodSurveyRecord) -> None:
        await self._put(self.survey_key(user_id, record.date), record)

    async def get_survey(self, user_id: str, date: str) -> Optional[MoodSurveyRecord]:
        return await self._get_model(self.survey_key(user_id, date), MoodSurveyRecord)

    async def list_surveys(self, user_id: str) -> List[MoodSurveyRecord]:
        """All survey records for a user, in stored order."""
        return await self._scan_models(self._user_key(user_id, "survey", ""), MoodSurveyRecord)

    # Camera moods

    async def save_camera_mood(self, user_id: str, record: CameraMoodRecord) -> None:
        await self._put(self.camera_key(user_id, record.date), record)

    async def get_camera_mood(self, user_id: str, date: str) -> Optional[CameraMoodRecord]:
        return await self._get_model(self.camera_key(user_id, date), CameraMoodRecord)

    async def list_camera_moods(self, user_id: str) -> List[CameraMoodRecord]:
        """All camera records for a user, in stored order."""
        return await self._scan_models(self._user_key(user_id, "camera", ""), CameraMoodRecord)

    # Completion

    async def get_completion(self, user_id: str, date: str) -> Optional[CompletionStatus]:
        return await self._get_model(self.completion_key(user_id, date), CompletionStatus)

    async def save_completion(self, user_id: str, date: str, status: CompletionStatus) -> None:
        await self._put(self.completion_key(user_id, date), status)

    # Report receipts

    async def save_report_receipt(self, user_id: str, receipt: ReportSendReceipt) -> None:
        """Overwrites any earlier receipt for the same week end."""
        await self._put(self.report_key(user_id, receipt.week_end), receipt)

    async def get_report_receipt(self, user_id: str, week_end: str) -> Optional[ReportSendReceipt]:
        return await self._get_model(self.report_key(user_id, week_end), ReportSendReceipt)

    # Accounts and profiles

    async def get_account(self, email: str) -> Optional[Account]:
        return await self._get_model(f"account:{email.lower()}", Account)

    async def save_account(self, account: Account) -> None:
        await self._put(f"account:{account.email.lower()}", account)

    async def get_basic_info(self, user_id: str) -> Optional[BasicInfo]:
        return await self._get_model(self._user_key(user_id, "basic"), BasicInfo)

    async def save_basic_info(self, user_id: str, info: BasicInfo) -> None:
        await self._put(self._user_key(user_id, "basic"), info)

    async def get_raw_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Profile as stored, whatever its role."""
        return await self.store.get(self._user_key(user_id, "profile"))

    async def get_elder_profile(self, user_id: str) -> Optional[ElderProfile]:
        """Elder profile, or None when the user has no profile or is a doctor."""
        raw = await self.get_raw_profile(user_id)
        if raw is None or raw.get("role", "elder") != "elder":
            return None
        raw = {**raw, "role": "elder"}
        try:
            return ElderProfile.model_validate(raw)
        except PydanticValidationError as e:
            logger.warning(f"Ignoring malformed elder profile for {user_id}: {e.error_count()} error(s)")
            return None

    async def get_doctor_profile(self, user_id: str) -> Optional[DoctorProfile]:
        profile = await self._get_model(self._user_key(user_id, "profile"), DoctorProfile)
        if profile is None:
            profile = await self._get_model(self._user_key(user_id, "doctorInfo"), DoctorProfile)
        return profile

    async def save_profile(self, user_id: str, profile: Union[ElderProfile, DoctorProfile]) -> None:
        await self._put(self._user_key(user_id, "profile"), profile)
        if isinstance(profile, DoctorProfile):
            await self._put(self._user_key(user_id, "doctorInfo"), profile)

    # Guardian messages

    @staticmethod
    def conversation_key(patient_id: str) -> str:
        return f"conversation:{patient_id}:messages"

    async def save_message(self, message: GuardianMessage) -> None:
        """
        Store a message and append its id to the patient's conversation.

        The append is a read-modify-write; callers serialize it per
        conversation key.
        """
        await self._put(f"message:{message.patient_id}:{message.id}", message)

        conversation_key = self.conversation_key(message.patient_id)
        conversation = await self.store.get(conversation_key) or {"messageIds": []}
        conversation["messageIds"].append(message.id)
        await self.store.set(conversation_key, conversation)

    async def list_messages(self, patient_id: str) -> List[GuardianMessage]:
        conversation = await self.store.get(self.conversation_key(patient_id)) or {}
        messages = []
        for message_id in conversation.get("messageIds", []):
            message = await self._get_model(f"message:{patient_id}:{message_id}", GuardianMessage)
            if message is not None:
                messages.append(message)
        return messages
