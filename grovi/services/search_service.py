"""
Place search: backend first, public geocoder as fallback
"""

import logging
from typing import List, Optional

import requests

from ..config import settings as default_settings
from ..errors import GroviError
from ..http_client import ApiClient
from ..schemas import SearchResult

logger = logging.getLogger(__name__)

MAX_RESULTS = 8


class SearchService:
    """Resolve a free-text query to map locations"""

    def __init__(self, client: ApiClient, settings=None, geocoder_session: Optional[requests.Session] = None):
        self.client = client
        self.settings = settings or default_settings
        # The geocoder is a third party: never send it our bearer token
        self.geocoder_session = geocoder_session or requests.Session()

    def search(self, query: str) -> List[SearchResult]:
        """An empty list is a normal "nothing found" outcome"""
        query = (query or "").strip()
        if not query:
            return []

        try:
            response = self.client.get("/utils/search", params={"q": query})
            return [SearchResult.model_validate(item) for item in response.json().get("results") or []]
        except (GroviError, ValueError, AttributeError) as e:
            logger.warning(f"Search API failed, trying public geocoder: {e}")

        return self._search_geocoder(query)

    def _search_geocoder(self, query: str) -> List[SearchResult]:
        config = self.settings.geocoder_config
        try:
            response = self.geocoder_session.get(
                config["url"],
                params={
                    "format": "json",
                    "countrycodes": config["countrycodes"],
                    "q": query,
                    "limit": MAX_RESULTS,
                    "addressdetails": 1,
                },
                headers=config["headers"],
                timeout=config["timeout"],
            )
        except requests.RequestException as e:
            logger.error(f"Fallback search failed: {e}")
            return []

        if not response.ok:
            logger.error(f"Fallback search failed - Status: {response.status_code}")
            return []

        results = []
        try:
            for item in response.json():
                results.append(SearchResult(
                    display_name=item["display_name"],
                    lat=float(item["lat"]),
                    lon=float(item["lon"]),
                    type=item.get("type") or "",
                    category=item.get("class") or "",
                ))
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Fallback search returned an unusable payload: {e}")
            return []
        return results
