"""
Session store: authenticated user, persisted bearer credential and status transitions
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Union

from ..data.messages import get_message
from ..errors import GroviError, NotAuthenticatedError
from ..http_client import ApiClient
from ..schemas import AuthResponse, RegisterProfile, SessionStatus, User

logger = logging.getLogger(__name__)

StatusListener = Callable[[SessionStatus, SessionStatus], None]


def _user_id(user: Optional[User]) -> Optional[str]:
    return user.id if user is not None else None


class SessionStore:
    """Owns the user record and keeps it in lockstep with the credential"""

    def __init__(self, client: ApiClient):
        self.client = client
        self.user: Optional[User] = None
        self.status = SessionStatus.LOADING
        self._listeners: List[StatusListener] = []
        self._lock = threading.Lock()

        # A 401 anywhere clears the credential; the user goes with it
        self.client.add_unauthorized_listener(self._on_credential_rejected)

    # =====================================
    # STATE
    # =====================================

    @property
    def is_authenticated(self) -> bool:
        return self.status == SessionStatus.AUTHENTICATED and self.user is not None

    @property
    def is_loading(self) -> bool:
        return self.status == SessionStatus.LOADING

    @property
    def should_redirect_to_login(self) -> bool:
        """True only once startup validation has finished without a session"""
        return self.status == SessionStatus.ANONYMOUS

    def require_authenticated(self) -> User:
        if not self.is_authenticated:
            raise NotAuthenticatedError(get_message("not_authenticated"))
        return self.user

    def subscribe(self, listener: StatusListener) -> None:
        """Register listener(previous_status, new_status) for every transition"""
        self._listeners.append(listener)

    def _transition(self, status: SessionStatus, user: Optional[User]) -> None:
        with self._lock:
            previous = self.status
            previous_user = self.user
            self.user = user
            self.status = status

        # Re-login as someone else is a new session even though the status repeats
        user_changed = _user_id(previous_user) != _user_id(user)
        if previous == status and not user_changed:
            return

        logger.info(f"Session {previous.value} -> {status.value}")
        for listener in list(self._listeners):
            try:
                listener(previous, status)
            except Exception as e:
                logger.error(f"Session listener failed: {e}", exc_info=True)

    # =====================================
    # STARTUP
    # =====================================

    def initialize(self) -> bool:
        """
        Restore a previous session from the stored credential.

        Status stays LOADING until the backend has confirmed or rejected the
        credential. Rejection is not an error for the caller: the credential is
        dropped and the session resolves to anonymous.
        """
        token = self.client.credential_store.get_token()
        if not token:
            self._transition(SessionStatus.ANONYMOUS, None)
            return False

        self.client.set_credential(token)
        try:
            response = self.client.get("/auth/me")
            user = User.model_validate(response.json())
        except Exception as e:
            logger.error(f"Token validation failed: {e}")
            self.client.credential_store.clear()
            self.client.clear_credential()
            self._transition(SessionStatus.ANONYMOUS, None)
            return False

        self._transition(SessionStatus.AUTHENTICATED, user)
        logger.info(f"✅ Restored session for {user.username}")
        return True

    # =====================================
    # OPERATIONS
    # =====================================

    def login(self, username_or_email: str, password: str) -> User:
        """Exchange credentials for a token and open the session"""
        try:
            response = self.client.post(
                "/auth/login",
                json={"username_or_email": username_or_email, "password": password},
                default_message=get_message("login_failed"),
            )
            auth = AuthResponse.model_validate(response.json())
        except GroviError as e:
            logger.error(f"Login failed: {e}")
            raise
        except ValueError as e:
            logger.error(f"Login response could not be parsed: {e}")
            raise GroviError(get_message("login_failed")) from e

        return self._open_session(auth)

    def register(self, profile: Union[RegisterProfile, Dict[str, Any]]) -> User:
        """Create an account and open the session for it"""
        if not isinstance(profile, RegisterProfile):
            profile = RegisterProfile.model_validate(profile)

        try:
            response = self.client.post(
                "/auth/register",
                json=profile.to_payload(),
                default_message=get_message("register_failed"),
            )
            auth = AuthResponse.model_validate(response.json())
        except GroviError as e:
            logger.error(f"Registration failed: {e}")
            raise
        except ValueError as e:
            logger.error(f"Registration response could not be parsed: {e}")
            raise GroviError(get_message("register_failed")) from e

        return self._open_session(auth)

    def logout(self) -> None:
        """Local only: the backend is not told"""
        self.client.credential_store.clear()
        self.client.clear_credential()
        self._transition(SessionStatus.ANONYMOUS, None)

    def _open_session(self, auth: AuthResponse) -> User:
        self.client.credential_store.save_token(auth.access_token, auth.user.username)
        self.client.set_credential(auth.access_token)
        self._transition(SessionStatus.AUTHENTICATED, auth.user)
        logger.info(f"✅ Signed in as {auth.user.username}")
        return auth.user

    def _on_credential_rejected(self) -> None:
        self._transition(SessionStatus.ANONYMOUS, None)
