"""Models module."""

from .user import UserCreate, UserLogin, Account, Token, TokenData
from .records import (
    MoodSurveyIn, MoodSurveyRecord, CameraMoodIn, CameraMoodRecord,
    CompletionStatus, WeeklyStatistics, ReportSendReceipt,
    NO_DATA,
)
from .profile import BasicInfo, ElderProfileIn, ElderProfile, DoctorProfileIn, DoctorProfile
from .message import GuardianMessageIn, GuardianMessage

__all__ = [
    'UserCreate', 'UserLogin', 'Account', 'Token', 'TokenData',
    'MoodSurveyIn', 'MoodSurveyRecord', 'CameraMoodIn', 'CameraMoodRecord',
    'CompletionStatus', 'WeeklyStatistics', 'ReportSendReceipt',
    'NO_DATA',
    'BasicInfo', 'ElderProfileIn', 'ElderProfile', 'DoctorProfileIn', 'DoctorProfile',
    'GuardianMessageIn', 'GuardianMessage',
]
