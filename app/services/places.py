"""
Google Places autocomplete, restricted to a single country

Why proxy through backend?
- Keep the Maps key off the browser
- Apply rate limits to protect the upstream quota
"""

import logging
from typing import Optional

import httpx

from ..config import GOOGLE_MAPS_API_KEY, PLACES_COUNTRY

logger = logging.getLogger(__name__)

PLACES_AUTOCOMPLETE_URL = "https://maps.googleapis.com/maps/api/place/autocomplete/json"
MIN_INPUT_LENGTH = 3


class PlacesError(Exception):
    """The autocomplete provider could not be reached or refused the request"""


class GooglePlacesClient:
    """Location-autocomplete collaborator"""

    def __init__(self, api_key: Optional[str] = GOOGLE_MAPS_API_KEY, country: str = PLACES_COUNTRY):
        self.api_key = api_key
        self.country = country

    async def autocomplete(self, text: str, session_token: Optional[str] = None) -> list[dict]:
        """Predictions for partial input as [{"description", "placeId"}]"""
        text = (text or "").strip()
        if len(text) < MIN_INPUT_LENGTH:
            return []
        if not self.api_key:
            raise PlacesError("Places autocomplete is not configured")

        params = {
            "input": text,
            "key": self.api_key,
            "components": f"country:{self.country}",
        }
        if session_token:
            params["sessiontoken"] = session_token

        try:
            async with httpx.AsyncClient(timeout=8.0) as client:
                resp = await client.get(PLACES_AUTOCOMPLETE_URL, params=params)
        except httpx.HTTPError as e:
            logger.error(f"❌ Places request failed: {e}")
            raise PlacesError("Places provider unavailable") from e

        if resp.status_code >= 400:
            logger.warning(f"Places error {resp.status_code}: {resp.text[:200]}")
            raise PlacesError("Places provider error")

        data = resp.json()
        status = data.get("status")
        if status not in ("OK", "ZERO_RESULTS"):
            logger.warning(f"Places returned status {status}: {data.get('error_message', '')}")
            raise PlacesError("Places provider error")

        return [
            {"description": p.get("description", ""), "placeId": p.get("place_id")}
            for p in data.get("predictions", [])
            if p.get("description")
        ]


def get_places_client() -> GooglePlacesClient:
    """Dependency for the autocomplete client; overridden in tests"""
    return GooglePlacesClient()
