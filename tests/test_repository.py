"""Complaint repository: append, filtering, and status transitions."""

import json

import pytest

from complaintdesk.errors import StatusTransitionError, StoreParseError, ValidationError
from complaintdesk.models import Category, ComplaintStatus, Priority
from complaintdesk.repository import REQUIRED_FIELDS, ComplaintRepository
from complaintdesk.store import MemoryStore


def submit(repo, fields, user_id, **extra):
    return repo.append({**fields, "userId": user_id, **extra})


# ═══════════════════════════════════════════════════════════════════════════════
# APPEND
# ═══════════════════════════════════════════════════════════════════════════════

class TestAppend:
    def test_valid_submission_adds_one_pending_record(self, repo, pothole, user):
        before = len(repo.list_all())
        complaint = submit(repo, pothole, user.id)
        after = repo.list_all()
        assert len(after) == before + 1
        assert after[-1].status == ComplaintStatus.PENDING
        assert complaint.id and complaint.created_at

    def test_id_and_created_at_come_from_clock(self, repo, pothole, user, start):
        complaint = submit(repo, pothole, user.id)
        assert complaint.created_at == start
        assert complaint.id == str(int(start.timestamp() * 1000))

    def test_supplied_id_and_created_at_are_kept(self, repo, pothole, user):
        complaint = submit(repo, pothole, user.id, id="abc", createdAt="2025-05-01T10:00:00Z")
        assert complaint.id == "abc"
        assert complaint.created_at.year == 2025

    def test_status_is_forced_to_pending(self, repo, pothole, user):
        complaint = submit(repo, pothole, user.id, status="resolved")
        assert complaint.status == ComplaintStatus.PENDING

    def test_enum_values_are_parsed(self, repo, pothole, user):
        complaint = submit(repo, pothole, user.id)
        assert complaint.category == Category.PATH_HOLES
        assert complaint.priority == Priority.HIGH

    def test_category_matching_is_lenient(self, repo, pothole, user):
        complaint = submit(repo, {**pothole, "category": "other", "priority": "URGENT"}, user.id)
        assert complaint.category == Category.OTHER
        assert complaint.priority == Priority.URGENT

    def test_media_is_kept_in_order(self, repo, pothole, user):
        media = ["data:image/png;base64,AAAA", "data:video/mp4;base64,BBBB"]
        complaint = submit(repo, pothole, user.id, media=media)
        assert repo.get(complaint.id).media == media

    def test_stored_shape_uses_camel_case_keys(self, store, repo, pothole, user):
        submit(repo, pothole, user.id)
        record = json.loads(store.get("complaints"))[0]
        assert set(record) == {"id", "title", "description", "category", "priority", "status",
                               "location", "media", "userId", "createdAt"}
        assert record["category"] == "Path Holes"
        assert record["status"] == "pending"

    @pytest.mark.parametrize("field", REQUIRED_FIELDS)
    def test_missing_field_raises_and_leaves_list_unchanged(self, store, repo, pothole, user, field):
        submit(repo, pothole, user.id)
        before = store.get("complaints")
        data = dict(pothole)
        del data[field]
        with pytest.raises(ValidationError) as exc:
            submit(repo, data, user.id)
        assert exc.value.fields == [field]
        assert store.get("complaints") == before

    def test_blank_fields_count_as_missing(self, repo, pothole, user):
        with pytest.raises(ValidationError) as exc:
            submit(repo, {**pothole, "title": "   ", "location": ""}, user.id)
        assert exc.value.fields == ["title", "location"]
        assert repo.list_all() == []

    def test_missing_user_id_raises(self, repo, pothole):
        with pytest.raises(ValidationError) as exc:
            repo.append(pothole)
        assert exc.value.fields == ["userId"]

    def test_every_missing_field_is_named(self, repo):
        with pytest.raises(ValidationError) as exc:
            repo.append({})
        assert exc.value.fields == list(REQUIRED_FIELDS) + ["userId"]

    def test_unknown_category_raises(self, repo, pothole, user):
        with pytest.raises(ValidationError) as exc:
            submit(repo, {**pothole, "category": "Traffic"}, user.id)
        assert exc.value.fields == ["category"]
        assert repo.list_all() == []

    def test_malformed_store_is_not_overwritten(self, pothole, user, clock):
        store = MemoryStore({"complaints": "{not json"})
        repo = ComplaintRepository(store, clock=clock)
        with pytest.raises(StoreParseError):
            submit(repo, pothole, user.id)
        assert store.get("complaints") == "{not json"

    def test_persist_then_read_back(self, store, repo, pothole, user, clock):
        original = submit(repo, pothole, user.id, media=["data:image/gif;base64,R0lG"])
        reread = ComplaintRepository(store, clock=clock).get(original.id)
        assert reread == original


# ═══════════════════════════════════════════════════════════════════════════════
# QUERIES
# ═══════════════════════════════════════════════════════════════════════════════

class TestQueries:
    def test_list_all_absent_key_is_empty(self, repo):
        assert repo.list_all() == []

    def test_list_all_keeps_storage_order(self, repo, pothole, user, other_user):
        a = submit(repo, pothole, user.id)
        b = submit(repo, {**pothole, "title": "Second"}, other_user.id)
        c = submit(repo, {**pothole, "title": "Third"}, user.id)
        assert [x.id for x in repo.list_all()] == [a.id, b.id, c.id]

    def test_list_for_user_only_returns_owned_records(self, repo, pothole, user, other_user):
        submit(repo, pothole, user.id)
        submit(repo, pothole, other_user.id)
        submit(repo, pothole, user.id)
        mine = repo.list_for_user(user.id)
        all_ids = {c.id for c in repo.list_all()}
        assert len(mine) == 2
        assert all(c.user_id == user.id for c in mine)
        assert {c.id for c in mine} <= all_ids

    def test_list_for_user_status_filter(self, repo, pothole, user):
        first = submit(repo, pothole, user.id)
        submit(repo, pothole, user.id)
        repo.mark_resolved(first.id)
        resolved = repo.list_for_user(user.id, ComplaintStatus.RESOLVED)
        assert [c.id for c in resolved] == [first.id]

    def test_list_for_user_is_recomputed(self, repo, pothole, user):
        assert repo.list_for_user(user.id) == []
        submit(repo, pothole, user.id)
        assert len(repo.list_for_user(user.id)) == 1

    def test_malformed_list_reads_as_empty(self):
        repo = ComplaintRepository(MemoryStore({"complaints": "oops"}))
        assert repo.list_all() == []

    def test_non_list_payload_reads_as_empty(self):
        repo = ComplaintRepository(MemoryStore({"complaints": json.dumps({"id": "1"})}))
        assert repo.list_all() == []

    def test_malformed_record_is_skipped(self, store, repo, pothole, user):
        good = submit(repo, pothole, user.id)
        records = json.loads(store.get("complaints"))
        records.append({"id": "bad", "status": "lost"})
        store.set("complaints", json.dumps(records))
        assert [c.id for c in repo.list_all()] == [good.id]

    def test_get_unknown_id(self, repo):
        assert repo.get("missing") is None

    def test_summary_counts(self, repo, pothole, user, other_user):
        a = submit(repo, pothole, user.id)
        b = submit(repo, pothole, user.id)
        submit(repo, pothole, other_user.id)
        repo.mark_resolved(a.id)
        repo.set_status(b.id, ComplaintStatus.IN_PROGRESS)
        assert repo.summary() == {"total": 3, "pending": 1, "in-progress": 1, "resolved": 1}
        assert repo.summary(user.id) == {"total": 2, "pending": 0, "in-progress": 1, "resolved": 1}


# ═══════════════════════════════════════════════════════════════════════════════
# STATUS TRANSITIONS
# ═══════════════════════════════════════════════════════════════════════════════

class TestStatusTransitions:
    def test_mark_resolved_changes_only_status(self, store, repo, pothole, user, other_user):
        a = submit(repo, pothole, user.id, media=["data:image/png;base64,AAAA"])
        b = submit(repo, {**pothole, "title": "Other"}, other_user.id)
        before = json.loads(store.get("complaints"))

        repo.mark_resolved(a.id)

        after = json.loads(store.get("complaints"))
        assert after[0]["status"] == "resolved"
        assert {**after[0], "status": "pending"} == before[0]
        assert json.dumps(after[1]) == json.dumps(before[1])
        assert repo.get(b.id).status == ComplaintStatus.PENDING

    def test_mark_resolved_unknown_id_is_noop(self, store, repo, pothole, user):
        submit(repo, pothole, user.id)
        before = store.get("complaints")
        assert repo.mark_resolved("does-not-exist") is None
        assert store.get("complaints") == before

    def test_mark_resolved_on_empty_store(self, store, repo):
        assert repo.mark_resolved("anything") is None
        assert store.get("complaints") is None

    def test_mark_resolved_is_idempotent(self, repo, pothole, user):
        c = submit(repo, pothole, user.id)
        repo.mark_resolved(c.id)
        again = repo.mark_resolved(c.id)
        assert again.status == ComplaintStatus.RESOLVED

    def test_mark_resolved_updates_every_record_sharing_an_id(self, store, repo, pothole, user):
        submit(repo, pothole, user.id, id="dup")
        submit(repo, {**pothole, "title": "Second"}, user.id, id="dup")
        other = submit(repo, {**pothole, "title": "Third"}, user.id)

        repo.mark_resolved("dup")

        statuses = [r["status"] for r in json.loads(store.get("complaints"))]
        assert statuses == ["resolved", "resolved", "pending"]
        assert repo.get(other.id).status == ComplaintStatus.PENDING

    def test_partially_resolved_duplicates_are_completed(self, store, repo, pothole, user):
        submit(repo, pothole, user.id, id="dup")
        submit(repo, pothole, user.id, id="dup")
        records = json.loads(store.get("complaints"))
        records[0]["status"] = "resolved"
        store.set("complaints", json.dumps(records))

        repo.mark_resolved("dup")

        statuses = [r["status"] for r in json.loads(store.get("complaints"))]
        assert statuses == ["resolved", "resolved"]

    def test_backward_move_on_any_duplicate_writes_nothing(self, store, repo, pothole, user):
        submit(repo, pothole, user.id, id="dup")
        submit(repo, pothole, user.id, id="dup")
        records = json.loads(store.get("complaints"))
        records[1]["status"] = "in-progress"
        store.set("complaints", json.dumps(records))
        before = store.get("complaints")

        with pytest.raises(StatusTransitionError):
            repo.set_status("dup", ComplaintStatus.PENDING)
        assert store.get("complaints") == before

    def test_pending_to_in_progress_to_resolved(self, repo, pothole, user):
        c = submit(repo, pothole, user.id)
        assert repo.set_status(c.id, ComplaintStatus.IN_PROGRESS).status == ComplaintStatus.IN_PROGRESS
        assert repo.set_status(c.id, "resolved").status == ComplaintStatus.RESOLVED

    @pytest.mark.parametrize("first, target", [
        (ComplaintStatus.RESOLVED, ComplaintStatus.PENDING),
        (ComplaintStatus.RESOLVED, ComplaintStatus.IN_PROGRESS),
        (ComplaintStatus.IN_PROGRESS, ComplaintStatus.PENDING),
    ])
    def test_backward_transitions_rejected(self, store, repo, pothole, user, first, target):
        c = submit(repo, pothole, user.id)
        repo.set_status(c.id, first)
        before = store.get("complaints")
        with pytest.raises(StatusTransitionError):
            repo.set_status(c.id, target)
        assert store.get("complaints") == before


# ═══════════════════════════════════════════════════════════════════════════════
# SCENARIO
# ═══════════════════════════════════════════════════════════════════════════════

class TestPotholeScenario:
    def test_submit_then_resolve(self, repo, pothole):
        repo.append({**pothole, "userId": "u1"})
        records = repo.list_all()
        assert len(records) == 1
        assert records[0].status == ComplaintStatus.PENDING
        assert records[0].user_id == "u1"

        repo.mark_resolved(records[0].id)

        mine = repo.list_for_user("u1")
        assert len(mine) == 1
        assert mine[0].status == ComplaintStatus.RESOLVED
