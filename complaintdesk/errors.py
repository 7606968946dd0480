"""Error kinds raised by the complaint desk core."""

from typing import Iterable, List


class ComplaintDeskError(Exception):
    pass


class ValidationError(ComplaintDeskError):
    """A submission is missing required fields or carries invalid values."""

    def __init__(self, fields: Iterable[str], message: str = ""):
        self.fields: List[str] = list(fields)
        if not message:
            message = "Missing or invalid field(s): " + ", ".join(self.fields)
        super().__init__(message)


class EncodingError(ComplaintDeskError):
    """An attachment could not be converted to a data URL."""

    def __init__(self, filename: str, reason: str):
        self.filename = filename
        self.reason = reason
        super().__init__(f"Could not encode {filename or 'attachment'}: {reason}")


class StoreParseError(ComplaintDeskError):
    """Stored state under a key is not valid JSON."""

    def __init__(self, key: str, reason: str):
        self.key = key
        super().__init__(f"Malformed data under key {key!r}: {reason}")


class StatusTransitionError(ComplaintDeskError):
    def __init__(self, complaint_id: str, current: str, requested: str):
        self.complaint_id = complaint_id
        self.current = current
        self.requested = requested
        super().__init__(f"Complaint {complaint_id} cannot move from {current} to {requested}")
