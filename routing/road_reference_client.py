#Purpose: The road-reference "adapter/client".
#Sole responsibility: talk to the map tile service via HTTP and return normalized outputs.
#Encapsulates service-specific details:
#coordinate formatting (lng,lat)
#URL construction (tilequery endpoint, access token)
#timeouts / one retry / error handling
#parsing response JSON into RoadSegment / symbolrank values
#It should not contain zone rules or callout logic.


from dotenv import load_dotenv
import logging
import os
import time
from typing import Any, Dict, List, Optional
import requests

from .models import Route, RoadSegment, RoutePoint
from .road_types import segments_from_legs

# Read the tile service base URL + token from environment
# Example in .env:
# ROAD_REFERENCE_URL=https://api.mapbox.com
# ROAD_REFERENCE_TOKEN=pk.xxxx
load_dotenv()
ROAD_REFERENCE_URL = os.getenv("ROAD_REFERENCE_URL")
ROAD_REFERENCE_TOKEN = os.getenv("ROAD_REFERENCE_TOKEN")

TILESET = "mapbox.mapbox-streets-v8"

logger = logging.getLogger(__name__)


class RoadReferenceError(Exception):
    """Custom exception for road-reference client errors."""
    pass


class RoadReferenceClient:
    """
    Road-reference Adapter / Client

    Sole responsibility:
    - Derive RoadSegments for a route (from router steps)
    - Query place density (symbolrank) around a point via HTTP
    - Return normalized outputs

    """
    def __init__(self, base_url: Optional[str] = None, token: Optional[str] = None,
                 timeout: float = 5, retry_backoff_s: float = 0.5):
        self.base_url = base_url or ROAD_REFERENCE_URL
        self.token = token or ROAD_REFERENCE_TOKEN
        self.timeout = timeout  # seconds to wait for the tile service before giving up
        self.retry_backoff_s = retry_backoff_s

        if not self.base_url:
            raise ValueError("Road reference base URL not set. Please set ROAD_REFERENCE_URL in the .env file.")

    #----------------
    # Internal helpers for coordinate formatting, requests, error handling
    #----------------
    def format_point(self, point: RoutePoint) -> str:
        """(lng, lat) -> 'lng,lat' as the tile service expects."""
        lng, lat = point
        return f"{lng:.6f},{lat:.6f}"

    def _get_json(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        GET with at most one retry on transport errors.
        Non-200 responses and non-JSON bodies are not retried.
        """
        attempts = 0
        while True:
            attempts += 1
            try:
                response = requests.get(url, params=params, timeout=self.timeout)
            except (requests.ConnectionError, requests.Timeout) as exc:
                if attempts > 1:
                    raise RoadReferenceError(f"road reference unreachable: {exc}") from exc
                logger.warning("road reference request failed (%s), retrying once", exc)
                time.sleep(self.retry_backoff_s)
                continue
            except requests.RequestException as exc:
                raise RoadReferenceError(f"road reference request failed: {exc}") from exc

            if response.status_code != 200:
                raise RoadReferenceError(f"road reference HTTP {response.status_code}")
            try:
                return response.json()
            except ValueError as exc:
                raise RoadReferenceError("road reference returned invalid JSON") from exc

    #----------------
    # Public methods
    #----------------
    def fetch_segments(self, route: Route) -> List[RoadSegment]:
        """
        Road segments for the route, in route miles.

        Built from the router's turn-by-turn steps; an empty list means
        "no road data" and the classifier degrades to all-technical.
        """
        segments = segments_from_legs(route.legs)
        logger.debug("road reference: %d segments from %d legs", len(segments), len(route.legs))
        return segments

    def query_place_rank(self, point: RoutePoint, radius_m: float = 3000) -> Optional[int]:
        """
        Calls the tilequery endpoint for place labels around `point` and
        returns the most significant (lowest) symbolrank, or None when no
        place is near.

        Returns:
            int in 1..19 (1 = major city) or None
        """
        url = f"{self.base_url}/v4/{TILESET}/tilequery/{self.format_point(point)}.json"
        params = {
            "layers": "place_label",
            "radius": int(radius_m),
            "limit": 10,
        }
        if self.token:
            params["access_token"] = self.token

        data = self._get_json(url, params)

        features = data.get("features")
        if features is None:
            raise RoadReferenceError(f"road reference error: {data.get('message', 'missing features')}")

        ranks = [
            feature.get("properties", {}).get("symbolrank")
            for feature in features
        ]
        ranks = [int(rank) for rank in ranks if rank is not None]
        return min(ranks) if ranks else None
