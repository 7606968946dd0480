# Complaint repository: the canonical complaint list under the "complaints" key

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .config import COMPLAINTS_KEY
from .errors import StatusTransitionError, StoreParseError, ValidationError
from .models import Category, Complaint, ComplaintStatus, Priority
from .store import KeyValueStore, dump_json, load_json

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("title", "description", "category", "priority", "location")

# Forward-only status policy; same-status updates are no-ops
ALLOWED_TRANSITIONS = {
    ComplaintStatus.PENDING: {ComplaintStatus.IN_PROGRESS, ComplaintStatus.RESOLVED},
    ComplaintStatus.IN_PROGRESS: {ComplaintStatus.RESOLVED},
    ComplaintStatus.RESOLVED: set(),
}


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def timestamp_id(moment: datetime) -> str:
    return str(int(moment.timestamp() * 1000))


def check_submission(data: Mapping[str, Any]) -> None:
    """Raise ValidationError naming every required field that is missing or blank."""
    missing = [f for f in REQUIRED_FIELDS if _blank(data.get(f))]
    if _blank(data.get("userId", data.get("user_id"))):
        missing.append("userId")
    if missing:
        raise ValidationError(missing)


class ComplaintRepository:
    def __init__(self, store: KeyValueStore, clock: Callable[[], datetime] = now_utc):
        self.store = store
        self.clock = clock

    # -- raw access ---------------------------------------------------------
    def _load_raw(self, strict: bool) -> List[Dict[str, Any]]:
        try:
            raw = load_json(self.store, COMPLAINTS_KEY)
            if raw is not None and not isinstance(raw, list):
                raise StoreParseError(COMPLAINTS_KEY, f"expected a list, got {type(raw).__name__}")
        except StoreParseError as e:
            if strict:
                raise
            logger.warning("Treating complaint list as empty: %s", e)
            return []
        return raw or []

    def _save_raw(self, records: List[Dict[str, Any]]) -> None:
        dump_json(self.store, COMPLAINTS_KEY, records)

    # -- queries ------------------------------------------------------------
    def list_all(self) -> List[Complaint]:
        complaints = []
        for record in self._load_raw(strict=False):
            try:
                complaints.append(Complaint.model_validate(record))
            except PydanticValidationError as e:
                logger.warning("Skipping malformed complaint record %r: %s",
                               record.get("id") if isinstance(record, dict) else record, e)
        return complaints

    def list_for_user(self, user_id: str, status: Optional[ComplaintStatus] = None) -> List[Complaint]:
        return [c for c in self.list_all()
                if c.user_id == user_id and (status is None or c.status == status)]

    def get(self, complaint_id: str) -> Optional[Complaint]:
        for c in self.list_all():
            if c.id == complaint_id:
                return c
        return None

    def summary(self, user_id: Optional[str] = None) -> Dict[str, int]:
        complaints = self.list_all() if user_id is None else self.list_for_user(user_id)
        counts = {"total": len(complaints)}
        for s in ComplaintStatus:
            counts[s.value] = sum(1 for c in complaints if c.status == s)
        return counts

    # -- mutations ----------------------------------------------------------
    def append(self, data: Union[Mapping[str, Any], BaseModel]) -> Complaint:
        """Validate a submission, stamp id/createdAt, and persist it as pending.

        Raises ValidationError naming every missing or invalid field; the
        stored list is left untouched in that case.
        """
        if isinstance(data, BaseModel):
            data = data.model_dump(by_alias=True)
        data = dict(data)

        check_submission(data)
        user_id = data.get("userId", data.get("user_id"))

        invalid = []
        try:
            category = Category(data["category"])
        except ValueError:
            invalid.append("category")
        try:
            priority = Priority(data["priority"])
        except ValueError:
            invalid.append("priority")
        if invalid:
            raise ValidationError(invalid, "Invalid value for: " + ", ".join(invalid))

        now = self.clock()
        created_at = data.get("createdAt", data.get("created_at")) or now
        try:
            complaint = Complaint(
                id=data.get("id") or timestamp_id(now),
                title=data["title"],
                description=data["description"],
                category=category,
                priority=priority,
                status=ComplaintStatus.PENDING,
                location=data["location"],
                media=list(data.get("media") or []),
                userId=user_id,
                createdAt=created_at,
            )
        except PydanticValidationError as e:
            fields = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
            raise ValidationError(fields or ["complaint"])

        records = self._load_raw(strict=True)
        records.append(complaint.to_stored())
        self._save_raw(records)
        logger.info("Stored complaint %s (%s, %s) for user %s",
                    complaint.id, complaint.category.value, complaint.priority.value, complaint.user_id)
        return complaint

    def set_status(self, complaint_id: str, status: ComplaintStatus) -> Optional[Complaint]:
        """Move a complaint forward in its lifecycle.

        Every record carrying the id is updated in a single write. Unknown
        ids are a no-op returning None. A backward move on any match raises
        StatusTransitionError and nothing is written.
        """
        status = ComplaintStatus(status)
        records = self._load_raw(strict=True)
        matches = []
        for record in records:
            if not isinstance(record, dict) or record.get("id") != complaint_id:
                continue
            try:
                current = Complaint.model_validate(record)
            except PydanticValidationError as e:
                logger.warning("Cannot update malformed complaint %s: %s", complaint_id, e)
                continue
            if current.status != status and status not in ALLOWED_TRANSITIONS[current.status]:
                raise StatusTransitionError(complaint_id, current.status.value, status.value)
            matches.append((record, current))

        if not matches:
            logger.info("No complaint with id %s; status update skipped", complaint_id)
            return None
        changed = [(record, current) for record, current in matches if current.status != status]
        if not changed:
            return matches[0][1]

        for record, current in changed:
            record["status"] = status.value
            logger.info("Complaint %s: %s -> %s", complaint_id, current.status.value, status.value)
        self._save_raw(records)
        return matches[0][1].model_copy(update={"status": status})

    def mark_resolved(self, complaint_id: str) -> Optional[Complaint]:
        return self.set_status(complaint_id, ComplaintStatus.RESOLVED)
