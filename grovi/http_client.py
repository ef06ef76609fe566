"""
HTTP client adapter for the Grovi backend
Single origin, long timeout, global handling of expired sessions
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Optional

import requests

from .config import settings as default_settings
from .errors import error_from_exception, error_from_response
from .models import CredentialStore

logger = logging.getLogger(__name__)

AUTH_HEADER = "Authorization"


def log_navigation(path: str) -> None:
    """Default navigator for headless use: nothing to redirect, so just report it"""
    logger.warning(f"Session expired - re-authentication required at {path}")


class ApiClient:
    """Wraps a requests.Session bound to the backend origin"""

    def __init__(
        self,
        credential_store: CredentialStore,
        settings=None,
        navigator: Optional[Callable[[str], None]] = None,
        session: Optional[requests.Session] = None,
    ):
        self.settings = settings or default_settings
        self.timeout = self.settings.REQUEST_TIMEOUT_SECONDS
        self.credential_store = credential_store
        self.navigator = navigator or log_navigation

        self.session = session or requests.Session()
        self.session.headers.update({
            "Accept": "application/json",
            "User-Agent": self.settings.USER_AGENT,
        })

        self._auth_lock = threading.Lock()
        self._unauthorized_listeners: List[Callable[[], None]] = []

    # =====================================
    # CREDENTIAL HEADER
    # =====================================

    @property
    def credential(self) -> Optional[str]:
        header = self.session.headers.get(AUTH_HEADER)
        if header and header.startswith("Bearer "):
            return header[len("Bearer "):]
        return None

    def set_credential(self, token: str) -> None:
        """Install the bearer token on every outgoing request"""
        self.session.headers[AUTH_HEADER] = f"Bearer {token}"

    def clear_credential(self) -> None:
        self.session.headers.pop(AUTH_HEADER, None)

    def add_unauthorized_listener(self, listener: Callable[[], None]) -> None:
        """Register a callback run during forced logout, before the 401 reaches the caller"""
        self._unauthorized_listeners.append(listener)

    # =====================================
    # URL HELPERS
    # =====================================

    def url(self, endpoint: str) -> str:
        return self.settings.api_url(endpoint)

    def image_url(self, image_path: str) -> str:
        """Resolve an overlay/thumbnail reference to something a renderer can load"""
        if image_path.startswith(("http://", "https://", "data:")):
            return image_path
        return self.url(image_path)

    # =====================================
    # REQUESTS
    # =====================================

    def request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        default_message: Optional[str] = None,
        **kwargs,
    ) -> requests.Response:
        """
        Send a request and return the successful response.

        Raises NetworkError when no response arrives and a typed ApiError for
        any error status. A 401 runs the forced-logout cleanup first.
        """
        try:
            response = self.session.request(
                method,
                self.url(endpoint),
                params=params,
                json=json,
                timeout=self.timeout,
                **kwargs,
            )
        except requests.RequestException as e:
            logger.error(f"{method} {endpoint} failed: {e}")
            raise error_from_exception(e) from e

        if response.status_code == 401:
            self._handle_unauthorized(response)

        if not response.ok:
            logger.debug(f"{method} {endpoint} - Status: {response.status_code}")
            raise error_from_response(response, default_message)

        return response

    def get(self, endpoint: str, **kwargs) -> requests.Response:
        return self.request("GET", endpoint, **kwargs)

    def post(self, endpoint: str, **kwargs) -> requests.Response:
        return self.request("POST", endpoint, **kwargs)

    def put(self, endpoint: str, **kwargs) -> requests.Response:
        return self.request("PUT", endpoint, **kwargs)

    def delete(self, endpoint: str, **kwargs) -> requests.Response:
        return self.request("DELETE", endpoint, **kwargs)

    # =====================================
    # FORCED LOGOUT
    # =====================================

    def _handle_unauthorized(self, response: requests.Response) -> None:
        """
        Clear the credential everywhere and send the user to the auth entry point.

        Only a 401 answering the credential that is still installed triggers the
        cleanup, so simultaneous 401s for one credential log out exactly once and
        a stale 401 cannot wipe a newer login.
        """
        sent = response.request.headers.get(AUTH_HEADER) if response.request is not None else None
        if not sent:
            # Anonymous call (e.g. wrong password at login): nothing to clear
            return

        with self._auth_lock:
            if self.session.headers.get(AUTH_HEADER) != sent:
                return
            self.credential_store.clear()
            self.clear_credential()
            listeners = list(self._unauthorized_listeners)

        logger.warning("⚠️ Backend rejected the session credential - forcing logout")

        for listener in listeners:
            try:
                listener()
            except Exception as e:
                logger.error(f"Unauthorized listener failed: {e}", exc_info=True)

        self.navigator(self.settings.AUTH_ENTRY_POINT)
