"""
Unit tests for the key-value stores and the record store.
"""

import asyncio
import json
import pytest

from moodmirror.core.errors import StoreUnavailable, ValidationError
from moodmirror.models import (
    Account, CompletionStatus, DoctorProfile, ElderProfile, GuardianMessage,
)
from moodmirror.storage import (
    InMemoryKVStore, LocalKVStore, RecordStore, create_kv_store,
)

from conftest import make_camera, make_survey


@pytest.fixture
def local_store(tmp_path):
    return LocalKVStore(str(tmp_path / "data"))


class TestLocalKVStore:
    """Tests for the JSON-file store."""

    @pytest.mark.asyncio
    async def test_set_and_get(self, local_store):
        await local_store.set("user:abc:survey:2024-03-04", {"overall_mood": "happy"})
        assert await local_store.get("user:abc:survey:2024-03-04") == {"overall_mood": "happy"}

    @pytest.mark.asyncio
    async def test_missing_key_returns_none(self, local_store):
        assert await local_store.get("user:abc:survey:2024-03-04") is None

    @pytest.mark.asyncio
    async def test_key_maps_to_nested_file(self, local_store):
        await local_store.set("user:abc:camera:2024-03-04", {"primaryMood": "sad"})
        path = local_store.base_dir / "user" / "abc" / "camera" / "2024-03-04.json"
        assert json.loads(path.read_text(encoding="utf-8")) == {"primaryMood": "sad"}

    @pytest.mark.asyncio
    async def test_email_keys_keep_their_dots(self, local_store):
        await local_store.set("account:jo@example.com", {"user_id": "1"})
        await local_store.set("account:jo@example", {"user_id": "2"})
        assert (await local_store.get("account:jo@example.com"))["user_id"] == "1"
        assert (await local_store.get("account:jo@example"))["user_id"] == "2"

    @pytest.mark.asyncio
    async def test_prefix_scan_keeps_first_insertion_order(self, local_store):
        await local_store.set("user:abc:survey:2024-03-05", {"n": 1})
        await local_store.set("user:abc:survey:2024-03-04", {"n": 2})
        await local_store.set("user:abc:camera:2024-03-04", {"n": 3})
        await local_store.set("user:abc:survey:2024-03-05", {"n": 4})

        values = await local_store.get_by_prefix("user:abc:survey:")
        assert values == [{"n": 4}, {"n": 2}]

    @pytest.mark.asyncio
    async def test_index_survives_a_new_instance(self, tmp_path):
        first = LocalKVStore(str(tmp_path))
        await first.set("user:abc:survey:2024-03-06", {"n": 1})
        await first.set("user:abc:survey:2024-03-05", {"n": 2})

        second = LocalKVStore(str(tmp_path))
        assert await second.get_by_prefix("user:abc:survey:") == [{"n": 1}, {"n": 2}]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("key", [
        "", "user::survey", "user:..:..:etc", "_index", "..:data2:x", "user:.:basic",
    ])
    async def test_invalid_keys_rejected(self, local_store, key):
        with pytest.raises(ValidationError):
            await local_store.set(key, {"x": 1})

    @pytest.mark.asyncio
    async def test_sibling_directory_is_not_reachable(self, tmp_path):
        store = LocalKVStore(str(tmp_path / "data"))
        with pytest.raises(ValidationError):
            await store.set("..:data2:x", {"x": 1})
        assert not (tmp_path / "data2").exists()

    @pytest.mark.asyncio
    async def test_reads_during_overwrite_see_a_whole_value(self, local_store):
        key = "user:abc:completion:2024-03-06"
        await local_store.set(key, {"surveyCompleted": True, "cameraCompleted": False})

        for _ in range(50):
            _, value = await asyncio.gather(
                local_store.set(key, {"surveyCompleted": True, "cameraCompleted": True}),
                local_store.get(key),
            )
            assert value["surveyCompleted"] is True

        leftovers = [p.name for p in local_store.base_dir.rglob("*.tmp")]
        assert leftovers == []

    @pytest.mark.asyncio
    async def test_corrupt_file_raises_store_unavailable(self, local_store):
        path = local_store.base_dir / "user" / "abc" / "survey" / "2024-03-04.json"
        path.parent.mkdir(parents=True)
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(StoreUnavailable):
            await local_store.get("user:abc:survey:2024-03-04")

    @pytest.mark.asyncio
    async def test_delete(self, local_store):
        await local_store.set("user:abc:basic", {"name": "Ana"})
        assert await local_store.delete("user:abc:basic") is True
        assert await local_store.get("user:abc:basic") is None
        assert await local_store.get_by_prefix("user:abc:") == []
        assert await local_store.delete("user:abc:basic") is False


class TestInMemoryKVStore:

    @pytest.mark.asyncio
    async def test_values_are_copied(self):
        store = InMemoryKVStore()
        value = {"messageIds": ["a"]}
        await store.set("conversation:p1:messages", value)
        value["messageIds"].append("b")

        stored = await store.get("conversation:p1:messages")
        assert stored == {"messageIds": ["a"]}

    @pytest.mark.asyncio
    async def test_prefix_scan_order(self):
        store = InMemoryKVStore()
        await store.set("k:2", {"n": 2})
        await store.set("k:1", {"n": 1})
        await store.set("k:2", {"n": 3})
        assert await store.get_by_prefix("k:") == [{"n": 3}, {"n": 1}]
        assert store.keys() == ["k:2", "k:1"]


def test_create_kv_store(tmp_path):
    assert isinstance(create_kv_store("memory"), InMemoryKVStore)
    assert isinstance(create_kv_store("local", str(tmp_path)), LocalKVStore)
    with pytest.raises(ValueError, match="Unsupported"):
        create_kv_store("redis")


class TestRecordStore:
    """Typed access over the key namespace."""

    @pytest.mark.asyncio
    async def test_survey_round_trip_uses_wire_names(self, records, kv_store):
        await records.save_survey("u1", make_survey("2024-03-04", "calm", energy=7))

        raw = await kv_store.get("user:u1:survey:2024-03-04")
        assert raw["overall_mood"] == "calm"
        assert raw["date"] == "2024-03-04"
        assert "completedAt" in raw

        survey = await records.get_survey("u1", "2024-03-04")
        assert survey.energy_level == 7

    @pytest.mark.asyncio
    async def test_resubmission_overwrites(self, records):
        await records.save_survey("u1", make_survey("2024-03-04", "sad"))
        await records.save_survey("u1", make_survey("2024-03-04", "happy"))

        surveys = await records.list_surveys("u1")
        assert [s.overall_mood for s in surveys] == ["happy"]

    @pytest.mark.asyncio
    async def test_lists_are_scoped_per_user(self, records):
        await records.save_camera_mood("u1", make_camera("2024-03-04"))
        await records.save_camera_mood("u10", make_camera("2024-03-04"))
        assert len(await records.list_camera_moods("u1")) == 1

    @pytest.mark.asyncio
    async def test_malformed_records_are_skipped(self, records, kv_store):
        await kv_store.set("user:u1:survey:2024-03-03", {"date": "2024-03-03"})
        await records.save_survey("u1", make_survey("2024-03-04"))

        surveys = await records.list_surveys("u1")
        assert [s.date for s in surveys] == ["2024-03-04"]

    @pytest.mark.asyncio
    async def test_completion_round_trip(self, records, kv_store):
        status = CompletionStatus(survey_completed=True, survey_completed_at="2024-03-04T09:00:00+00:00")
        await records.save_completion("u1", "2024-03-04", status)

        raw = await kv_store.get("user:u1:completion:2024-03-04")
        assert raw["surveyCompleted"] is True
        assert raw["cameraCompleted"] is False
        assert await records.get_completion("u1", "2024-03-04") == status

    @pytest.mark.asyncio
    async def test_accounts_are_keyed_by_lowercase_email(self, records):
        await records.save_account(Account(user_id="u1", email="Jo@Example.com", hashed_password="x"))
        account = await records.get_account("jo@example.COM")
        assert account.user_id == "u1"

    @pytest.mark.asyncio
    async def test_legacy_profile_without_role_is_elder(self, records, kv_store):
        await kv_store.set("user:u1:profile", {"guardianEmail": "g@example.com", "age": 81})

        profile = await records.get_elder_profile("u1")
        assert profile.guardian_email == "g@example.com"
        assert profile.age == "81"
        assert profile.role == "elder"

    @pytest.mark.asyncio
    async def test_doctor_profile_is_mirrored(self, records, kv_store):
        await records.save_profile("d1", DoctorProfile(specialty="Geriatrics"))

        assert (await kv_store.get("user:d1:doctorInfo"))["specialty"] == "Geriatrics"
        assert await records.get_elder_profile("d1") is None
        assert (await records.get_doctor_profile("d1")).specialty == "Geriatrics"

    @pytest.mark.asyncio
    async def test_elder_profile_round_trip(self, records):
        await records.save_profile("u1", ElderProfile(guardian_name="Sam", guardian_email="sam@example.com"))
        profile = await records.get_elder_profile("u1")
        assert profile.guardian_name == "Sam"

    @pytest.mark.asyncio
    async def test_messages_follow_conversation_order(self, records, kv_store):
        for n in range(3):
            await records.save_message(GuardianMessage(
                id=f"m{n}", patient_id="p1", sender_id="d1", content=f"note {n}",
            ))

        messages = await records.list_messages("p1")
        assert [m.id for m in messages] == ["m0", "m1", "m2"]
        assert (await kv_store.get("conversation:p1:messages")) == {"messageIds": ["m0", "m1", "m2"]}
