"""
Shared test fixtures and configuration.
"""

import pytest
import os

# Set test environment variables before importing app modules
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing")
os.environ.setdefault("DEBUG", "true")
os.environ["STORAGE_TYPE"] = "memory"
os.environ.setdefault("LOCAL_STORAGE_PATH", "/tmp/moodmirror_test_data")
os.environ["LOG_FILE_ENABLED"] = "false"
os.environ["RESEND_API_KEY"] = ""

from moodmirror.models import CameraMoodRecord, MoodSurveyRecord  # noqa: E402
from moodmirror.storage import InMemoryKVStore, RecordStore  # noqa: E402


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def kv_store():
    return InMemoryKVStore()


@pytest.fixture
def records(kv_store):
    return RecordStore(kv_store)


def make_survey(date: str, mood: str = "happy", energy=None, **fields) -> MoodSurveyRecord:
    return MoodSurveyRecord(date=date, overall_mood=mood, energy_level=energy, **fields)


def make_camera(date: str, mood: str = "neutral", confidence: float = 80.0) -> CameraMoodRecord:
    return CameraMoodRecord(date=date, primary_mood=mood, confidence=confidence)
