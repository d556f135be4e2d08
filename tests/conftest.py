"""Shared fixtures: canned FIP responses and fake HTTP objects."""
from __future__ import annotations

import pytest


def timeline_node(subtitle="Cheney Lane", start_time=1572251703, **overrides):
    node = {
        "__typename": "TimelineItem",
        "subtitle": subtitle,
        "start_time": start_time,
        "end_time": start_time + 143,
        "label": "KITSUNE",
        "album": "Café Kitsuné mix",
        "interpreters": ["Nostalgia 77"],
        "musical_kind": "Musique électronique ",
        "year": 2018,
        "title": "Nostalgia 77",
    }
    node.update(overrides)
    return node


def timeline_payload(nodes, end_cursor="MTU3NDY4OTI4Mg==", has_next_page=True):
    return {
        "data": {
            "timelineCursor": {
                "__typename": "HistoryCursor",
                "totalCount": 0,
                "edges": [{"__typename": "TimeLineItemEdge", "node": n, "cursor": "MTU3MjI1MTg0Ng=="} for n in nodes],
                "pageInfo": {
                    "__typename": "PageInfo",
                    "endCursor": end_cursor,
                    "hasNextPage": has_next_page,
                },
            }
        }
    }


class FakeResponse:
    def __init__(self, status_code=200, payload=None, body_is_json=True):
        self.status_code = status_code
        self._payload = payload
        self._body_is_json = body_is_json

    def json(self):
        if not self._body_is_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload


class FakeSession:
    """Stands in for requests.Session; replays responses or raises exceptions in order."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture()
def no_sleep():
    """A recording replacement for time.sleep."""
    waits = []

    def sleep(seconds):
        waits.append(seconds)

    sleep.waits = waits
    return sleep
