import json

from notes_portal.models.upload import RecentUpload
from notes_portal.services.recent_uploads import (
    JsonFileRecentUploadsStore,
    MemoryRecentUploadsStore,
    RecentUploads,
)


def _entry(n):
    return RecentUpload(course="First Year - Civil Engineering", subject="Surveying", unit=n, url=f"https://files.example/{n}.pdf")


def test_record_prepends_and_caps_at_three():
    recent = RecentUploads(MemoryRecentUploadsStore())
    for n in range(1, 6):
        recent.record(_entry(n))
    assert [e.unit for e in recent.list()] == [5, 4, 3]


def test_json_store_round_trips_through_file(tmp_path):
    path = tmp_path / "nested" / "recent.json"
    recent = RecentUploads(JsonFileRecentUploadsStore(str(path)))
    recent.record(_entry(1))
    recent.record(_entry(2))

    raw = json.loads(path.read_text(encoding="utf-8"))
    assert [r["unit"] for r in raw] == [2, 1]
    assert set(raw[0]) == {"course", "subject", "unit", "url"}

    reloaded = RecentUploads(JsonFileRecentUploadsStore(str(path)))
    assert [e.unit for e in reloaded.list()] == [2, 1]


def test_json_store_missing_file_is_empty(tmp_path):
    assert JsonFileRecentUploadsStore(str(tmp_path / "absent.json")).load() == []


def test_json_store_malformed_content_is_empty(tmp_path):
    path = tmp_path / "recent.json"
    path.write_text("{not json", encoding="utf-8")
    assert JsonFileRecentUploadsStore(str(path)).load() == []

    path.write_text(json.dumps({"course": "x"}), encoding="utf-8")
    assert JsonFileRecentUploadsStore(str(path)).load() == []

    path.write_text(json.dumps([{"course": "x"}]), encoding="utf-8")
    assert JsonFileRecentUploadsStore(str(path)).load() == []


def test_list_truncates_oversized_history(tmp_path):
    path = tmp_path / "recent.json"
    path.write_text(json.dumps([_entry(n).model_dump() for n in range(6)]), encoding="utf-8")
    recent = RecentUploads(JsonFileRecentUploadsStore(str(path)))
    assert [e.unit for e in recent.list()] == [0, 1, 2]


def test_json_store_save_leaves_no_temp_file(tmp_path):
    path = tmp_path / "recent.json"
    path.write_text(json.dumps([_entry(9).model_dump()]), encoding="utf-8")
    recent = RecentUploads(JsonFileRecentUploadsStore(str(path)))
    recent.record(_entry(1))

    assert [p.name for p in tmp_path.iterdir()] == ["recent.json"]
    assert [e.unit for e in recent.list()] == [1, 9]
