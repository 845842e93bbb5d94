from __future__ import annotations
import json as _json
import logging
from typing import Any, Optional

import requests

from topicdriver.core.models import Message, PayloadMode
from topicdriver.http.client import HttpClient, safe_snip
from topicdriver.http.errors import (
    PublishFailed, RegistrationFailed, RetrievalFailed, TransportError
)

HTTP_OK = 200
HTTP_CREATED = 201
HTTP_NO_CONTENT = 204


class TopicTransport:
    """
    The three remote calls of the topic service: subscribe, publish, pull.
    Holds nothing but the base URL, payload mode and HTTP client.
    """
    def __init__(
        self,
        base_url: str,
        *,
        payload: PayloadMode = PayloadMode.JSON,
        timeout: float = 30.0,
        logger: Optional[logging.Logger] = None,
        session: Optional[requests.Session] = None,
    ):
        self.payload = PayloadMode(payload)
        self._http = HttpClient(base_url=base_url, timeout=timeout, logger=logger, session=session)

    def register(self, topic: str) -> str:
        """Subscribe to ``topic``; returns the subscription token."""
        try:
            resp = self._http.post("subscribe", json=[topic])
        except TransportError as ex:
            raise RegistrationFailed(-1, ex.url, f"subscribe {topic!r}: {ex}", cause=ex)

        if resp.status_code != HTTP_CREATED:
            raise RegistrationFailed(
                resp.status_code, resp.url,
                f"subscribe {topic!r} rejected with status {resp.status_code}: {safe_snip(resp)}",
            )
        try:
            token = resp.json().get("token")
        except (ValueError, AttributeError) as ex:
            raise RegistrationFailed(resp.status_code, resp.url, f"subscribe {topic!r}: unreadable body", cause=ex)
        if not isinstance(token, str) or not token:
            raise RegistrationFailed(resp.status_code, resp.url, f"subscribe {topic!r}: no token in response")
        return token

    def submit(self, topic: str, key: str, value: Any) -> None:
        """Publish one message. Non-201 -> PublishFailed; unreachable or malformed
        request (RAW value that is not JSON text) -> TransportError."""
        params = {"topicId": topic}
        if self.payload is PayloadMode.RAW:
            resp = self._http.post(
                "publish",
                params=params,
                data=self._raw_body(key, value),
                headers={"Content-Type": "application/json"},
            )
        else:
            resp = self._http.post("publish", params=params, json={"key": key, "value": value})

        if resp.status_code != HTTP_CREATED:
            raise PublishFailed(
                resp.status_code, resp.url,
                f"server responded with status code {resp.status_code}",
            )

    def retrieve(self, topic: str, token: str) -> Optional[Message]:
        """Pull the next pending message; None when the topic queue is empty."""
        try:
            resp = self._http.get("pull", params={"topicId": topic, "subscriberId": token})
        except TransportError as ex:
            raise RetrievalFailed(-1, ex.url, f"pull {topic!r}: {ex}", cause=ex)

        if resp.status_code == HTTP_NO_CONTENT:
            return None
        if resp.status_code != HTTP_OK:
            raise RetrievalFailed(
                resp.status_code, resp.url,
                f"pull {topic!r} failed with status {resp.status_code}: {safe_snip(resp)}",
            )

        try:
            body = resp.json()
        except ValueError as ex:
            raise RetrievalFailed(resp.status_code, resp.url, f"pull {topic!r}: unreadable body", cause=ex)
        if not isinstance(body, dict) or not isinstance(body.get("key"), str):
            raise RetrievalFailed(resp.status_code, resp.url, f"pull {topic!r}: malformed message")

        value = body.get("value")
        if self.payload is PayloadMode.RAW:
            value = _json.dumps(value, ensure_ascii=False).encode("utf-8")
        return Message(key=body["key"], value=value)

    def _raw_body(self, key: str, value: Any) -> bytes:
        # value must already be JSON text; it is embedded verbatim
        url = f"{self._http.base_url}/publish"
        if isinstance(value, str):
            value = value.encode("utf-8")
        if not isinstance(value, (bytes, bytearray)):
            raise TransportError(-1, url, f"raw payload must be str or bytes, not {type(value).__name__}")
        try:
            _json.loads(value)
        except ValueError as ex:
            raise TransportError(-1, url, "raw payload is not JSON text", cause=ex)
        return b'{"key": ' + _json.dumps(key).encode("utf-8") + b', "value": ' + bytes(value) + b"}"
