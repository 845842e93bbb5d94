from __future__ import annotations
import logging
from typing import Any, Dict, Optional
import requests

from topicdriver.http.errors import TransportError


class HttpClient:
    def __init__(
        self,
        base_url: str = "",
        timeout: float = 30.0,
        logger: Optional[logging.Logger] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._log = logger or logging.getLogger("topicdriver.http")

    def _full_url(self, url: str) -> str:
        if url.startswith("http://") or url.startswith("https://"):
            return url
        if self.base_url:
            return f"{self.base_url}/{url.lstrip('/')}"
        return url

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Any] = None,
        data: Optional[bytes] = None,
    ) -> requests.Response:
        """Send one request. Any status comes back as-is; only failures to
        exchange a request/response pair raise (as TransportError)."""
        full = self._full_url(url)
        self._log.debug("HTTP %s %s params=%s", method.upper(), full, params)
        try:
            resp = self._session.request(
                method=method.upper(),
                url=full,
                headers=headers or {},
                params=params,
                json=json,
                data=data,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as ex:
            raise TransportError(-1, full, f"{method.upper()} {full} failed: {ex}", cause=ex)

        self._log.debug("HTTP %s %s", resp.status_code, full)
        return resp

    # ---------- Convenience helpers ----------
    def get(self, url: str, *, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        return self.request("GET", url, params=params)

    def post(self, url: str, *, params=None, json=None, data=None, headers=None) -> requests.Response:
        return self.request("POST", url, params=params, json=json, data=data, headers=headers)


def safe_snip(resp: requests.Response, max_len: int = 400) -> str:
    try:
        txt = resp.text or ""
        return txt[:max_len]
    except Exception:
        return ""
