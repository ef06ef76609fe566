"""
Field repository: the signed-in user's fields, cached as last confirmed by the backend
"""

import logging
import threading
from typing import Any, Dict, List, Optional, Union

from ..data.messages import get_message
from ..errors import GroviError
from ..http_client import ApiClient
from ..schemas import CropField, FieldCreate, FieldUpdate, SessionStatus, ThumbnailPayload
from .session_store import SessionStore

logger = logging.getLogger(__name__)


class FieldRepository:
    """
    CRUD over /fields with a local cache.

    The cache only changes after the backend confirms a write, so a failed
    call leaves it exactly as it was. Concurrent writes to the same field are
    not serialised: whichever response is applied last wins.
    """

    def __init__(self, client: ApiClient, session: SessionStore):
        self.client = client
        self.session = session
        self._fields: List[CropField] = []
        self._current: Optional[CropField] = None
        self._lock = threading.Lock()
        self.is_loading = False

        self.session.subscribe(self._on_session_change)

    # =====================================
    # CACHE VIEWS
    # =====================================

    @property
    def fields(self) -> List[CropField]:
        with self._lock:
            return list(self._fields)

    @property
    def current(self) -> Optional[CropField]:
        return self._current

    def set_current(self, field: Optional[CropField]) -> None:
        self._current = field

    def find(self, field_id: Union[str, int]) -> Optional[CropField]:
        """Look up a cached field without touching the network"""
        field_id = str(field_id)
        with self._lock:
            return next((f for f in self._fields if f.id == field_id), None)

    def clear(self) -> None:
        with self._lock:
            self._fields = []
            self._current = None

    # =====================================
    # REMOTE OPERATIONS
    # =====================================

    def refresh(self) -> List[CropField]:
        """Replace the cache with the backend's full list"""
        self.session.require_authenticated()

        self.is_loading = True
        try:
            response = self.client.get("/fields/", default_message=get_message("load_fields_failed"))
            fields = [CropField.model_validate(item) for item in response.json()]
        except GroviError as e:
            logger.error(f"Failed to fetch fields: {e}")
            raise
        except ValueError as e:
            logger.error(f"Field list could not be parsed: {e}")
            raise GroviError(get_message("load_fields_failed")) from e
        finally:
            self.is_loading = False

        with self._lock:
            self._fields = fields
        logger.info(f"Loaded {len(fields)} fields")
        return list(fields)

    def create(self, data: Union[FieldCreate, Dict[str, Any]]) -> CropField:
        self.session.require_authenticated()
        if not isinstance(data, FieldCreate):
            data = FieldCreate.model_validate(data)

        field = self._send("POST", "/fields/", data.to_payload(), "create_field_failed")
        with self._lock:
            self._fields = self._fields + [field]
        return field

    def update(self, field_id: Union[str, int], data: Union[FieldUpdate, Dict[str, Any]]) -> CropField:
        self.session.require_authenticated()
        if not isinstance(data, FieldUpdate):
            data = FieldUpdate.model_validate(data)

        field_id = str(field_id)
        field = self._send("PUT", f"/fields/{field_id}", data.to_payload(), "update_field_failed")
        with self._lock:
            self._fields = [field if f.id == field_id else f for f in self._fields]
            if self._current is not None and self._current.id == field_id:
                self._current = field
        return field

    def remove(self, field_id: Union[str, int]) -> None:
        self.session.require_authenticated()

        field_id = str(field_id)
        try:
            self.client.delete(f"/fields/{field_id}", default_message=get_message("delete_field_failed"))
        except GroviError as e:
            logger.error(f"Failed to delete field {field_id}: {e}")
            raise

        with self._lock:
            self._fields = [f for f in self._fields if f.id != field_id]
            if self._current is not None and self._current.id == field_id:
                self._current = None

    def get(self, field_id: Union[str, int]) -> CropField:
        """Fetch one field fresh from the backend and make it the current selection"""
        self.session.require_authenticated()

        field_id = str(field_id)
        field = self._send("GET", f"/fields/{field_id}", None, "field_not_found")
        self._current = field
        return field

    # =====================================
    # THUMBNAILS
    # =====================================

    def get_thumbnail(self, field_id: Union[str, int]) -> Optional[str]:
        """Thumbnail image data, or None. A missing thumbnail is a normal state."""
        if not self.session.is_authenticated:
            return None
        try:
            response = self.client.get(f"/fields/{field_id}/thumbnail")
            return response.json().get("image_data")
        except (GroviError, ValueError, AttributeError) as e:
            logger.debug(f"No thumbnail for field {field_id}: {e}")
            return None

    def save_thumbnail(self, field_id: Union[str, int], image_data: str) -> bool:
        """Store a thumbnail. Failure is logged and reported, never raised."""
        self.session.require_authenticated()

        payload = ThumbnailPayload(field_id=field_id, image_data=image_data)
        try:
            self.client.post(f"/fields/{field_id}/thumbnail", json=payload.model_dump())
        except GroviError as e:
            logger.error(f"Failed to save thumbnail for field {field_id}: {e}")
            return False
        return True

    # =====================================
    # INTERNALS
    # =====================================

    def _send(self, method: str, endpoint: str, payload: Optional[Dict[str, Any]], message_key: str) -> CropField:
        default_message = get_message(message_key)
        try:
            response = self.client.request(method, endpoint, json=payload, default_message=default_message)
            return CropField.model_validate(response.json())
        except GroviError as e:
            logger.error(f"{method} {endpoint} failed: {e}")
            raise
        except ValueError as e:
            logger.error(f"{method} {endpoint} returned an unusable field record: {e}")
            raise GroviError(default_message) from e

    def _on_session_change(self, previous: SessionStatus, status: SessionStatus) -> None:
        if status == SessionStatus.AUTHENTICATED:
            # A different user may be signing in over the previous session
            self.clear()
            try:
                self.refresh()
            except GroviError as e:
                logger.error(f"Initial field load failed: {e}")
        elif previous == SessionStatus.AUTHENTICATED:
            # Never leak one user's fields into the next session
            self.clear()
