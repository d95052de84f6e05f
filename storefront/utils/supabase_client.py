import os
import httpx
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from storefront.core.errors import Conflict, UpstreamFailure
from storefront.utils.logger import get_logger

logger = get_logger("utils.supabase_client")

Params = Union[Dict[str, str], Sequence[Tuple[str, str]]]

# Postgres unique_violation, surfaced by PostgREST with HTTP 409
_UNIQUE_VIOLATION = "23505"


def _total_from_content_range(header: Optional[str]) -> Optional[int]:
    """Parse the total out of a PostgREST Content-Range header ("0-9/42", "*/0")."""
    if not header or "/" not in header:
        return None
    total = header.rsplit("/", 1)[1]
    return int(total) if total.isdigit() else None


class SupabaseClient:
    """
    Lightweight client for the Supabase REST (PostgREST) and auth APIs.

    Every failure is logged and raised as UpstreamFailure; callers never get
    an empty result in place of an error.
    """
    def __init__(self, url: Optional[str] = None, key: Optional[str] = None, client: Optional[httpx.Client] = None):
        self.url = url or os.environ.get("SUPABASE_URL")
        self.key = key or os.environ.get("SUPABASE_SERVICE_ROLE_KEY") or os.environ.get("SUPABASE_KEY")

        if not self.url or not self.key:
            logger.warning("SUPABASE_URL or SUPABASE_KEY not set in environment.")

        self.headers = {
            "apikey": self.key or "",
            "Authorization": f"Bearer {self.key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation"
        }
        self.client = client or httpx.Client(base_url=self.url or "", headers=self.headers, timeout=30.0)

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = self.client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Supabase {method} {path} failed: {e}")
            raise UpstreamFailure(f"Supabase request failed: {e}") from e
        if response.status_code == 409 and _UNIQUE_VIOLATION in response.text:
            raise Conflict("Duplicate row")
        if response.status_code >= 400:
            logger.error(f"Supabase {method} {path} returned {response.status_code}: {response.text[:200]}")
            raise UpstreamFailure(f"Supabase returned HTTP {response.status_code}")
        return response

    def select(
        self,
        table: str,
        params: Optional[Params] = None,
        count: bool = False,
    ) -> Tuple[List[Dict[str, Any]], Optional[int]]:
        """
        Query a Supabase table.

        Returns (rows, total); total is only filled when `count` is set.
        """
        headers = {"Prefer": "count=exact"} if count else None
        response = self._request("GET", f"/rest/v1/{table}", params=params, headers=headers)
        rows = response.json()
        total = _total_from_content_range(response.headers.get("content-range")) if count else None
        return (rows if isinstance(rows, list) else []), total

    def count(self, table: str, params: Optional[Params] = None) -> int:
        """Exact row count via HEAD + Prefer: count=exact."""
        response = self._request(
            "HEAD",
            f"/rest/v1/{table}",
            params=params or {"select": "*"},
            headers={"Prefer": "count=exact"},
        )
        total = _total_from_content_range(response.headers.get("content-range"))
        if total is None:
            raise UpstreamFailure(f"Supabase did not return a count for {table}")
        return total

    def insert(self, table: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Insert one row and return its representation."""
        response = self._request("POST", f"/rest/v1/{table}", json=payload)
        rows = response.json()
        if isinstance(rows, list):
            if not rows:
                raise UpstreamFailure(f"Supabase insert into {table} returned no row")
            return rows[0]
        return rows

    def delete(self, table: str, params: Params) -> int:
        """Delete matching rows; returns how many were removed."""
        response = self._request("DELETE", f"/rest/v1/{table}", params=params)
        rows = response.json() if response.content else []
        return len(rows) if isinstance(rows, list) else 0

    def get_auth_user(self, access_token: str) -> Optional[Dict[str, Any]]:
        """Resolve a user access token via GoTrue; None if the token is rejected."""
        try:
            response = self.client.get(
                "/auth/v1/user",
                headers={"apikey": self.key or "", "Authorization": f"Bearer {access_token}"},
            )
        except httpx.HTTPError as e:
            logger.error(f"Supabase auth lookup failed: {e}")
            raise UpstreamFailure(f"Supabase auth lookup failed: {e}") from e
        if response.status_code in (401, 403):
            return None
        if response.status_code >= 400:
            logger.error(f"Supabase auth lookup returned {response.status_code}")
            raise UpstreamFailure(f"Supabase auth returned HTTP {response.status_code}")
        return response.json()

    def close(self) -> None:
        self.client.close()
