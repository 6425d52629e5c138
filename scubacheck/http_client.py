from typing import Any, Dict, Optional

import requests


class SourceUnavailable(Exception):
    """An external source gave no usable answer (transport error, timeout, non-2xx, bad JSON)."""

    def __init__(self, message: str, status_code: Optional[int] = None, rate_limited: bool = False):
        super().__init__(message)
        self.status_code = status_code
        self.rate_limited = rate_limited


class HttpClient:
    """JSON over one requests session. Single attempt per call: no retries."""

    def __init__(self, timeout=8, user_agent=None):
        self.session = requests.Session()
        self.session.headers.update({
            "User-Agent": user_agent or "Mozilla/5.0 (Windows NT 10.0; Win64; x64)",
            "Accept": "application/json",
        })
        self.timeout = timeout

    def get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self._request("GET", url, params=params)

    def post_json(self, url: str, payload: Any, params: Optional[Dict[str, Any]] = None) -> Any:
        return self._request("POST", url, params=params, json=payload)

    def _request(self, method: str, url: str, **kwargs) -> Any:
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.Timeout as e:
            raise SourceUnavailable(f"timeout after {self.timeout}s: {url}") from e
        except requests.RequestException as e:
            raise SourceUnavailable(f"{type(e).__name__}: {e}") from e

        if not resp.ok:
            raise SourceUnavailable(
                f"HTTP {resp.status_code} from {url}",
                status_code=resp.status_code,
                rate_limited=resp.status_code == 429,
            )
        try:
            return resp.json()
        except ValueError as e:
            raise SourceUnavailable(f"malformed JSON from {url}", status_code=resp.status_code) from e

    def close(self) -> None:
        self.session.close()
