"""Session store — the signed-in identity, persisted across restarts."""

import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from studio_tracker.application.interfaces import CollectionQuery, DocumentStore, LocalStorage
from studio_tracker.domain.entities import Session, UserRole
from studio_tracker.domain.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

SESSION_KEY = "authUser"
USERS_COLLECTION = "users"

INVALID_CREDENTIALS = "Invalid email or password"
ACCOUNT_DEACTIVATED = "Your account has been deactivated. Contact admin."
LOGIN_FAILED = "An error occurred during login. Please try again."

SessionListener = Callable[[Session | None], Awaitable[None]]


@dataclass
class LoginResult:
    success: bool
    session: Session | None = None
    error: str | None = None


class SessionStore:
    """Owns the current ``Session`` and tells listeners whenever it changes."""

    def __init__(self, store: DocumentStore, local_storage: LocalStorage):
        self._store = store
        self._local_storage = local_storage
        self._session: Session | None = None
        self._listeners: list[SessionListener] = []

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    @property
    def is_admin(self) -> bool:
        return self._session is not None and (
            self._session.role == UserRole.ADMIN.value or self._session.is_admin
        )

    def has_permission(self, tab: str) -> bool:
        return self._session is not None and self._session.has_permission(tab)

    def require_session(self) -> Session:
        """The signed-in session.

        Raises:
            AuthenticationError: Nobody is signed in.
        """
        if self._session is None:
            raise AuthenticationError()
        return self._session

    def add_listener(self, listener: SessionListener) -> None:
        self._listeners.append(listener)

    # ── Lifecycle ───────────────────────────────────────────────────

    async def restore(self) -> Session | None:
        """Reload the persisted session, dropping it if it cannot be read."""
        saved = self._local_storage.get_item(SESSION_KEY)
        session: Session | None = None
        if saved:
            try:
                session = Session.from_dict(json.loads(saved))
            except (ValueError, KeyError, TypeError) as exc:
                logger.warning("Discarding unreadable stored session: %s", exc)
                self._local_storage.remove_item(SESSION_KEY)
        await self._set(session)
        return session

    async def login(self, email: str, password: str) -> LoginResult:
        try:
            users = await self._store.get_all(
                CollectionQuery(
                    collection=USERS_COLLECTION,
                    where={"email": email.strip().lower()},
                )
            )
        except Exception as exc:
            logger.error("Login error: %s", exc)
            return LoginResult(success=False, error=LOGIN_FAILED)

        if not users:
            return LoginResult(success=False, error=INVALID_CREDENTIALS)

        user = users[0]
        if user.get("password") != password:
            return LoginResult(success=False, error=INVALID_CREDENTIALS)
        if user.get("isActive") is False:
            return LoginResult(success=False, error=ACCOUNT_DEACTIVATED)

        role = user.get("role") or UserRole.USER.value
        session = Session(
            id=user.id,
            email=user.get("email") or "",
            name=user.get("name") or "",
            role=role,
            is_admin=role == UserRole.ADMIN.value,
        )
        self._persist(session)
        await self._set(session)
        logger.info("User %s signed in as %s", session.id, session.role)
        return LoginResult(success=True, session=session)

    async def logout(self) -> None:
        self._local_storage.remove_item(SESSION_KEY)
        await self._set(None)

    async def update_user(self, data: dict) -> Session | None:
        """Merge ``data`` into the current session when it describes the same user."""
        current = self._session
        if current is None or str(data.get("id")) != current.id:
            return current
        fields = {**current.to_dict(), **data}
        if "role" in data:
            fields["is_admin"] = data["role"] == UserRole.ADMIN.value
        merged = Session.from_dict(fields)
        self._persist(merged)
        await self._set(merged)
        return merged

    # ── Internals ───────────────────────────────────────────────────

    def _persist(self, session: Session) -> None:
        self._local_storage.set_item(SESSION_KEY, json.dumps(session.to_dict()))

    async def _set(self, session: Session | None) -> None:
        self._session = session
        for listener in list(self._listeners):
            try:
                await listener(session)
            except Exception:
                logger.exception("Session listener failed")
