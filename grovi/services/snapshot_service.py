"""
Vegetation-index snapshot access and health classification
Snapshots are never cached: every view asks the backend again
"""

import logging
from typing import List, Optional, Tuple, Union

from ..config import settings
from ..data.messages import get_message
from ..data.vi_types import VI_TYPES_BY_CODE, VIGOR_BANDS, WATER_BANDS
from ..errors import GroviError
from ..http_client import ApiClient
from ..schemas import AnalysisResult, HealthStatus, IndexType, VISnapshot
from .session_store import SessionStore

logger = logging.getLogger(__name__)

# =====================================
# HEALTH CLASSIFICATION
# =====================================

def index_range(index_type: Union[IndexType, str]) -> Tuple[float, float]:
    """Valid (min, max) for an index type"""
    vi = VI_TYPES_BY_CODE[IndexType(index_type).value]
    return vi["range"]["min"], vi["range"]["max"]


def score_percentage(value: float, index_type: Union[IndexType, str]) -> float:
    """Position of value within its own index range, clamped to [0, 100]"""
    range_min, range_max = index_range(index_type)
    percentage = (value - range_min) / (range_max - range_min) * 100
    return max(0.0, min(100.0, percentage))


def health_status(value: float, index_type: Union[IndexType, str], locale: Optional[str] = None) -> HealthStatus:
    """
    Classify a mean index value.

    NDWI measures water, so it is read as dry/moderate/saturated; every other
    index is read as vigour (low/moderate/good/excellent).
    """
    index_type = IndexType(index_type)
    locale = locale or settings.LOCALE
    percentage = score_percentage(value, index_type)
    bands = WATER_BANDS if index_type == IndexType.NDWI else VIGOR_BANDS

    band = bands[-1]
    for candidate in bands:
        if candidate["upper"] is not None and percentage < candidate["upper"]:
            band = candidate
            break

    return HealthStatus(
        status=band["status"],
        label=band["label"].get(locale, band["label"]["th"]),
        description=band["description"].get(locale, band["description"]["th"]),
        color=band["color"],
        percentage=percentage,
    )


def snapshot_health(snapshot: VISnapshot, locale: Optional[str] = None) -> HealthStatus:
    """Classify a snapshot against the range of its own index type"""
    return health_status(snapshot.mean_value, snapshot.vi_type, locale)

# =====================================
# SNAPSHOT ACCESS
# =====================================

class SnapshotService:
    """Read and trigger vegetation-index snapshots for a field"""

    def __init__(self, client: ApiClient, session: SessionStore):
        self.client = client
        self.session = session

    def list_snapshots(
        self,
        field_id: Union[str, int],
        index_type: Optional[Union[IndexType, str]] = None,
        limit: Optional[int] = None,
    ) -> List[VISnapshot]:
        """Latest snapshots first. index_type=None returns every index."""
        self.session.require_authenticated()

        params = {"limit": limit or settings.SNAPSHOT_LIMIT}
        if index_type is not None:
            params["vi_type"] = IndexType(index_type).value

        try:
            response = self.client.get(
                f"/vi-analysis/snapshots/{field_id}",
                params=params,
                default_message=get_message("load_snapshots_failed"),
            )
            snapshots = [VISnapshot.model_validate(item) for item in response.json()]
        except GroviError as e:
            logger.error(f"Failed to load snapshots for field {field_id}: {e}")
            raise
        except ValueError as e:
            logger.error(f"Snapshot list for field {field_id} could not be parsed: {e}")
            raise GroviError(get_message("load_snapshots_failed")) from e

        snapshots.sort(key=lambda s: s.snapshot_date, reverse=True)
        return snapshots

    def clear_snapshots(self, field_id: Union[str, int], index_type: Union[IndexType, str]) -> bool:
        """Delete stored snapshots before a fresh analysis. Failure is not fatal."""
        self.session.require_authenticated()

        try:
            self.client.delete(
                f"/vi-analysis/snapshots/{field_id}",
                params={"vi_type": IndexType(index_type).value},
            )
        except GroviError as e:
            logger.warning(f"⚠️ Failed to clear old snapshots for field {field_id}, continuing: {e}")
            return False

        logger.info(f"Cleared {IndexType(index_type).value} snapshots for field {field_id}")
        return True

    def request_analysis(
        self,
        field_id: Union[str, int],
        index_type: Union[IndexType, str],
        count: Optional[int] = None,
        clear_old: bool = True,
    ) -> AnalysisResult:
        """
        Ask the backend for `count` cloud-filtered snapshots.

        Zero snapshots created means no usable imagery: it comes back as a
        result with has_data False, not as an error.
        """
        self.session.require_authenticated()

        params = {
            "vi_type": IndexType(index_type).value,
            "count": count or settings.ANALYSIS_COUNT,
            "clear_old": "true" if clear_old else "false",
        }
        try:
            response = self.client.post(
                f"/vi-analysis/{field_id}/analyze-historical",
                params=params,
                default_message=get_message("analysis_failed"),
            )
            result = AnalysisResult.model_validate(response.json())
        except GroviError as e:
            logger.error(f"Analysis failed for field {field_id}: {e}")
            raise
        except ValueError as e:
            logger.error(f"Analysis response for field {field_id} could not be parsed: {e}")
            raise GroviError(get_message("analysis_failed")) from e

        if result.has_data:
            logger.info(f"✅ Analysis created {result.snapshots_created} snapshots over {result.unique_dates} dates")
        else:
            logger.warning(f"⚠️ No usable satellite data for field {field_id}")
        return result

    def refresh_analysis(
        self,
        field_id: Union[str, int],
        index_type: Union[IndexType, str],
        count: Optional[int] = None,
    ) -> Tuple[AnalysisResult, List[VISnapshot]]:
        """Clear, re-analyse and reload, so the listing only holds fresh results"""
        self.clear_snapshots(field_id, index_type)
        result = self.request_analysis(field_id, index_type, count=count, clear_old=True)
        snapshots = self.list_snapshots(field_id, index_type, limit=count)
        return result, snapshots
