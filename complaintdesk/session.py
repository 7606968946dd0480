# Session store: the signed-in user, persisted under the "user" key

import uuid
import logging
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from .config import USER_KEY
from .errors import StoreParseError
from .models import User
from .store import KeyValueStore, dump_json, load_json

logger = logging.getLogger(__name__)

_UNSET = object()


def make_user(name: str, email: str) -> User:
    """Mock login: no credential check, id is stable per email address."""
    email = email.strip().lower()
    uid = str(uuid.uuid5(uuid.NAMESPACE_URL, f"mailto:{email}"))
    return User(id=uid, name=name.strip() or email, email=email)


class SessionStore:
    def __init__(self, store: KeyValueStore):
        self.store = store
        self._cached = _UNSET

    def current_session(self) -> Optional[User]:
        if self._cached is _UNSET:
            self._cached = self._read()
        return self._cached

    def _read(self) -> Optional[User]:
        try:
            raw = load_json(self.store, USER_KEY)
        except StoreParseError as e:
            logger.warning("Treating session as absent: %s", e)
            return None
        if raw is None:
            return None
        try:
            return User.model_validate(raw)
        except PydanticValidationError as e:
            logger.warning("Treating session as absent, stored user is invalid: %s", e)
            return None

    def begin_session(self, user: User) -> User:
        dump_json(self.store, USER_KEY, user.model_dump(mode="json"))
        self._cached = user
        logger.info("Session started for %s", user.email)
        return user

    def end_session(self) -> None:
        self.store.remove(USER_KEY)
        self._cached = None
        logger.info("Session ended")
