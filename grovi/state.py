"""
Application state container
Built once at startup and handed to every view; owns all mutable client state
"""

import logging
from typing import Any, Callable, Dict, Optional, Union

import requests

from .config import settings as default_settings
from .database import create_db_engine, test_connection
from .http_client import ApiClient
from .models import CredentialStore
from .schemas import CropField, FieldCreate
from .services.export_service import ExportService
from .services.field_repository import FieldRepository
from .services.search_service import SearchService
from .services.session_store import SessionStore
from .services.snapshot_service import SnapshotService
from .services.timeseries_service import TimeSeriesService
from .visualization.thumbnails import thumbnail_data_url

logger = logging.getLogger(__name__)


class AppState:
    """
    Wires the HTTP client, session and repositories together.

    Views read from and dispatch to these components; nothing else mutates
    the session or the field cache.
    """

    def __init__(
        self,
        settings=None,
        credential_store: Optional[CredentialStore] = None,
        navigator: Optional[Callable[[str], None]] = None,
        http_session: Optional[requests.Session] = None,
        geocoder_session: Optional[requests.Session] = None,
    ):
        self.settings = settings or default_settings
        self.credential_store = credential_store or CredentialStore(create_db_engine(self.settings.DATABASE_URL))

        self.client = ApiClient(
            self.credential_store,
            settings=self.settings,
            navigator=navigator,
            session=http_session,
        )
        self.session = SessionStore(self.client)
        self.fields = FieldRepository(self.client, self.session)
        self.snapshots = SnapshotService(self.client, self.session)
        self.timeseries = TimeSeriesService(self.client, self.session)
        self.search = SearchService(self.client, settings=self.settings, geocoder_session=geocoder_session)
        self.exports = ExportService(self.client, self.session)

    def start(self) -> bool:
        """Restore the previous session, if its credential is still accepted"""
        logger.info(f"🚀 Starting Grovi client against {self.settings.API_BASE_URL}")
        return self.session.initialize()

    def health(self) -> Dict[str, Any]:
        """Local component status, in the same shape the backend health check reports"""
        store_ok = test_connection(self.credential_store.engine)
        return {
            "status": "healthy" if store_ok else "unhealthy",
            "checks": {
                "credential_store": {"status": "healthy" if store_ok else "unhealthy"},
                "session": {"status": self.session.status.value},
            },
            "api_base_url": self.settings.API_BASE_URL,
        }

    def create_field(self, data: Union[FieldCreate, Dict[str, Any]], with_thumbnail: bool = True) -> CropField:
        """Create a field and store a generated thumbnail for it"""
        field = self.fields.create(data)
        if with_thumbnail:
            try:
                image_data = thumbnail_data_url(field)
            except (OSError, ValueError) as e:
                logger.error(f"Failed to render thumbnail for field {field.id}: {e}")
            else:
                self.fields.save_thumbnail(field.id, image_data)
        return field
