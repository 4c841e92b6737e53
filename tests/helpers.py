"""Scripted stand-in for the Amazon token endpoint and advertising API, served through httpx.MockTransport."""

from __future__ import annotations

import json
import urllib.parse
from collections import defaultdict, deque
from typing import Any, Deque, Dict, List, Optional, Tuple

import httpx

TOKEN_URL = "https://api.amazon.com/auth/o2/token"
API_BASE_URL = "https://advertising-api.amazon.com"


class FakeAmazonApi:
    """
    Queue responses per (method, path); every request is recorded.

    A queued entry is either an ``httpx.Response`` or an exception instance
    that is raised instead of answering (network failure). The last entry of
    a queue is sticky so polling endpoints need only one.
    """

    def __init__(self) -> None:
        self._queues: Dict[Tuple[str, str], Deque[Any]] = defaultdict(deque)
        self.calls: List[httpx.Request] = []

    def add(self, method: str, path: str, *responses: Any) -> "FakeAmazonApi":
        self._queues[(method.upper(), path)].extend(responses)
        return self

    def token(self, *responses: Any) -> "FakeAmazonApi":
        return self.add("POST", "/auth/o2/token", *responses)

    def profiles(self, *responses: Any) -> "FakeAmazonApi":
        return self.add("GET", "/v2/profiles", *responses)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        queue = self._queues.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, json={"code": "NOT_FOUND", "details": f"no stub for {request.url.path}"})
        item = queue.popleft() if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        return item

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport())

    def calls_to(self, path: str, method: Optional[str] = None) -> List[httpx.Request]:
        return [
            call
            for call in self.calls
            if call.url.path == path and (method is None or call.method == method.upper())
        ]

    @staticmethod
    def form(request: httpx.Request) -> Dict[str, str]:
        return dict(urllib.parse.parse_qsl(request.content.decode()))

    @staticmethod
    def json_body(request: httpx.Request) -> Any:
        return json.loads(request.content.decode()) if request.content else None


def token_response(
    access_token: str = "at1",
    refresh_token: Optional[str] = "rt1",
    expires_in: Optional[int] = 3600,
) -> httpx.Response:
    payload: Dict[str, Any] = {"access_token": access_token, "token_type": "bearer"}
    if refresh_token is not None:
        payload["refresh_token"] = refresh_token
    if expires_in is not None:
        payload["expires_in"] = expires_in
    return httpx.Response(200, json=payload)


def error_response(status_code: int, error: str = "invalid_grant", description: str = "rejected") -> httpx.Response:
    return httpx.Response(status_code, json={"error": error, "error_description": description})
