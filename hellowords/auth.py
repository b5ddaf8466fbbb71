# -*- coding: utf-8 -*-
"""Authentication collaborator.

:class:`AuthClient` is the surface the rest of HelloWords depends on: the
current session, a stream of session transitions, sign-in initiation and
sign-out. :class:`LocalAuth` is an email-based implementation that keeps
the signed-in account in local storage so it survives restarts.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional
import logging
import re
import uuid

from .errors import AuthError
from .storage import AUTH_SESSION_KEY, LocalStorage

logger = logging.getLogger(__name__)

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# Stable namespace so the same email always maps to the same account id
ACCOUNT_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_DNS, "hellowords.local")


@dataclass(frozen=True)
class AuthSession:
    user_id: str
    email: str


Listener = Callable[[str, Optional[AuthSession]], None]


class AuthClient:
    """Base class: session state plus listener fan-out."""

    def __init__(self) -> None:
        self._session: Optional[AuthSession] = None
        self._listeners: List[Listener] = []

    @property
    def session(self) -> Optional[AuthSession]:
        return self._session

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener*; return a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: str) -> None:
        for listener in list(self._listeners):
            listener(event, self._session)

    async def begin_sign_in(self) -> None:
        raise NotImplementedError

    async def sign_out(self) -> None:
        raise NotImplementedError


class LocalAuth(AuthClient):
    """Email-only local accounts.

    ``begin_sign_in`` hands control to *prompt* (the UI's sign-in dialog),
    which eventually calls :meth:`complete_sign_in`.
    """

    def __init__(
        self,
        storage: LocalStorage,
        prompt: Optional[Callable[[], Awaitable[None]]] = None,
    ) -> None:
        super().__init__()
        self.storage = storage
        self.prompt = prompt
        saved = storage.get(AUTH_SESSION_KEY)
        if isinstance(saved, dict) and saved.get("user_id"):
            self._session = AuthSession(str(saved["user_id"]), str(saved.get("email") or ""))

    @staticmethod
    def account_id_for(email: str) -> str:
        return str(uuid.uuid5(ACCOUNT_NAMESPACE, email.strip().lower()))

    async def begin_sign_in(self) -> None:
        if self.prompt is None:
            raise AuthError("No sign-in prompt configured")
        await self.prompt()

    def complete_sign_in(self, email: str) -> AuthSession:
        email = email.strip().lower()
        if not EMAIL_RE.match(email):
            raise AuthError(f"Invalid email address: {email!r}")
        self._session = AuthSession(self.account_id_for(email), email)
        self.storage.set(AUTH_SESSION_KEY, {"user_id": self._session.user_id, "email": email})
        logger.info("Signed in as %s", self._session.user_id)
        self._emit(SIGNED_IN)
        return self._session

    async def sign_out(self) -> None:
        if self._session is None:
            return
        self._session = None
        self.storage.remove(AUTH_SESSION_KEY)
        logger.info("Signed out")
        self._emit(SIGNED_OUT)
