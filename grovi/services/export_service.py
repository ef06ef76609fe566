"""
Field export downloads
Server-side formats come from the backend; KML falls back to local conversion
"""

import json
import logging

from ..data.messages import get_message
from ..errors import GroviError
from ..http_client import ApiClient
from ..schemas import CropField, ExportFile
from ..utils.geo_export import field_file_base, field_to_csv, field_to_geojson, geojson_to_kml
from .session_store import SessionStore

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("geojson", "kml", "csv_wkt", "shp", "gpkg")

KML_MEDIA_TYPE = "application/vnd.google-earth.kml+xml"

# Formats only the backend can produce: (extension, media type)
SERVER_FORMATS = {
    "shp": ("zip", "application/zip"),
    "gpkg": ("gpkg", "application/geopackage+sqlite3"),
}


class ExportService:
    """Produce a downloadable file for a field in the requested format"""

    def __init__(self, client: ApiClient, session: SessionStore):
        self.client = client
        self.session = session

    def download(self, field: CropField, fmt: str = "geojson") -> ExportFile:
        if fmt not in EXPORT_FORMATS:
            raise ValueError(f"Unsupported export format '{fmt}'. Supported: {', '.join(EXPORT_FORMATS)}")

        file_base = field_file_base(field)

        if fmt == "geojson":
            return self.local_geojson(field)
        if fmt == "csv_wkt":
            return ExportFile(
                filename=f"{file_base}.csv",
                content=field_to_csv(field).encode("utf-8"),
                media_type="text/csv;charset=utf-8",
            )
        if fmt == "kml":
            return self._kml(field)
        return self._server_export(field, fmt)

    def local_geojson(self, field: CropField) -> ExportFile:
        content = json.dumps(field_to_geojson(field), ensure_ascii=False, indent=2)
        return ExportFile(
            filename=f"{field_file_base(field)}.geojson",
            content=content.encode("utf-8"),
            media_type="application/geo+json",
        )

    def _kml(self, field: CropField) -> ExportFile:
        filename = f"{field_file_base(field)}.kml"
        try:
            content = self._fetch_export(field, "kml")
        except GroviError as e:
            logger.warning(f"Backend KML export failed; falling back to client conversion: {e}")
            content = geojson_to_kml(field).encode("utf-8")
        return ExportFile(filename=filename, content=content, media_type=KML_MEDIA_TYPE)

    def _server_export(self, field: CropField, fmt: str) -> ExportFile:
        extension, media_type = SERVER_FORMATS[fmt]
        try:
            content = self._fetch_export(field, fmt)
        except GroviError as e:
            logger.error(f"Export {fmt} failed for field {field.id}: {e}")
            raise
        return ExportFile(
            filename=f"{field_file_base(field)}.{extension}",
            content=content,
            media_type=media_type,
        )

    def _fetch_export(self, field: CropField, fmt: str) -> bytes:
        self.session.require_authenticated()
        response = self.client.get(
            f"/fields/{field.id}/export/{fmt}",
            headers={"Accept": "*/*"},
            default_message=get_message("export_failed"),
        )
        return response.content
