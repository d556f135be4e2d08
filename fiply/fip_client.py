from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

import requests

from fiply.cursor import encode_cursor
from fiply.errors import MalformedResponseError, RecordParseError, TransportError
from fiply.types import Page, PageInfo, PlayEvent

logger = logging.getLogger(__name__)


FIP_URL = "https://www.fip.fr/latest/api/graphql"
FIP_STATION_ID = 7
FIP_PAGE_SIZE = 100
# persisted GraphQL query used by the fip.fr history page
FIP_HISTORY_HASH = "ce6791c62408f27b9338f58c2a4b6fdfd9d1afc992ebae874063f714784d4129"


def build_user_agent(cfg: dict) -> str:
    fip = cfg.get("fip", {})
    if fip.get("user_agent"):
        return fip["user_agent"]
    app = fip.get("app_name", "fiply")
    version = fip.get("version", "0.1.0")
    return f"{app}/{version}"


def create_fip_session(cfg: dict) -> requests.Session:
    s = requests.Session()
    s.headers.update({
        "User-Agent": build_user_agent(cfg),
        "Accept": "application/json",
    })
    return s


def build_params(
    point_in_time: int,
    page_size: int = FIP_PAGE_SIZE,
    station_id: int = FIP_STATION_ID,
    query_hash: str = FIP_HISTORY_HASH,
) -> Dict[str, str]:
    variables = json.dumps({
        "first": page_size,
        "after": encode_cursor(point_in_time),
        "stationId": station_id,
    })
    extensions = json.dumps({
        "persistedQuery": {
            "version": 1,
            "sha256Hash": query_hash,
        }
    })
    return {
        "operationName": "History",
        "variables": variables,
        "extensions": extensions,
    }


def _locate_envelope(payload: Any) -> Optional[Tuple[Any, Any]]:
    # data -> timelineCursor -> {edges, pageInfo}
    if not isinstance(payload, dict):
        return None
    data = payload.get("data")
    if not isinstance(data, dict):
        return None
    root = data.get("timelineCursor")
    if not isinstance(root, dict):
        return None
    if "edges" not in root or "pageInfo" not in root:
        return None
    return root["edges"], root["pageInfo"]


def _parse_page_info(info: Any) -> PageInfo:
    if not isinstance(info, dict):
        raise MalformedResponseError(f"pageInfo is not an object: {info!r}")
    end_cursor = info.get("endCursor")
    has_next = info.get("hasNextPage")
    if not isinstance(end_cursor, str) or not isinstance(has_next, bool):
        logger.error("Could not parse pageInfo: %r", info)
        raise MalformedResponseError(f"unexpected pageInfo: {info!r}")
    return PageInfo(end_cursor=end_cursor, has_next_page=has_next)


def parse_page(payload: Any) -> Page:
    """
    Turn one decoded History response into a Page.

    Bad edges are logged and skipped; a missing envelope or pageInfo fails the
    whole page with MalformedResponseError.
    """
    found = _locate_envelope(payload)
    if found is None:
        raise MalformedResponseError("data.timelineCursor.{edges,pageInfo} not found in response")
    edges, info = found

    # a null edges list is treated as an empty page
    if edges is None:
        edges = []
    if not isinstance(edges, list):
        raise MalformedResponseError(f"edges is not a list: {type(edges).__name__}")

    events: List[PlayEvent] = []
    for edge in edges:
        try:
            node = edge.get("node") if isinstance(edge, dict) else None
            events.append(PlayEvent.from_node(node))
        except RecordParseError as e:
            logger.warning(
                "Got error %s while parsing edge:\n%s",
                e,
                json.dumps(edge, indent=2, ensure_ascii=False, default=str),
            )

    page_info = _parse_page_info(info)
    return Page(events=events, page_info=page_info)


class FipClient:
    """One GET per call against the FIP History endpoint. Retrying is the caller's job."""

    def __init__(
        self,
        session: requests.Session,
        url: str = FIP_URL,
        station_id: int = FIP_STATION_ID,
        page_size: int = FIP_PAGE_SIZE,
        query_hash: str = FIP_HISTORY_HASH,
        timeout: float = 30.0,
    ):
        self.session = session
        self.url = url
        self.station_id = station_id
        self.page_size = page_size
        self.query_hash = query_hash
        self.timeout = timeout

    @classmethod
    def from_config(cls, cfg: dict, session: Optional[requests.Session] = None) -> "FipClient":
        fip = cfg.get("fip", {})
        return cls(
            session=session or create_fip_session(cfg),
            url=fip.get("url", FIP_URL),
            station_id=int(fip.get("station_id", FIP_STATION_ID)),
            page_size=int(fip.get("page_size", FIP_PAGE_SIZE)),
            query_hash=fip.get("query_hash", FIP_HISTORY_HASH),
            timeout=float(fip.get("timeout", 30.0)),
        )

    def fetch_songs(self, point_in_time: int) -> Page:
        """Fetch the songs played at or before `point_in_time` (epoch seconds)."""
        logger.info("Fetching songs at %s", point_in_time)
        params = build_params(
            point_in_time,
            page_size=self.page_size,
            station_id=self.station_id,
            query_hash=self.query_hash,
        )

        try:
            r = self.session.get(self.url, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error("Got error %r from HTTP client", e)
            raise TransportError(f"GET {self.url} failed: {e}") from e

        if r.status_code >= 400:
            raise TransportError(f"GET {self.url} failed: HTTP {r.status_code}")

        try:
            payload = r.json()
        except ValueError as e:
            logger.error("Got error %r while reading JSON body", e)
            raise TransportError(f"GET {self.url} returned a non-JSON body") from e

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("FIP JSON body: %s", json.dumps(payload, indent=2, ensure_ascii=False))
        return parse_page(payload)

    # lets the collector treat the client as a plain fetch callable
    __call__ = fetch_songs
