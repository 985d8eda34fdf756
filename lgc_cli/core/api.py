"""Supabase REST client for workout and check-in records."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional, Sequence

import requests

from lgc_cli.core.constants import RECORD_TABLES

LOGGER = logging.getLogger(__name__)

PAGE_SIZE = 1000


class APIError(RuntimeError):
    """Raised for store failures after retries."""


class SupabaseAPI:
    """Thin wrapper around the PostgREST endpoint of a Supabase project."""

    def __init__(
        self,
        url: str,
        api_key: str,
        access_token: Optional[str] = None,
        schema: str = "public",
        max_retries: int = 3,
        timeout_seconds: int = 30,
    ) -> None:
        self.base_url = url.rstrip("/") + "/rest/v1"
        self.api_key = api_key
        self.access_token = access_token
        self.schema = schema
        self.max_retries = max_retries
        self.timeout_seconds = timeout_seconds

    @property
    def _headers(self) -> Dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.access_token or self.api_key}",
            "Content-Type": "application/json",
            "Accept-Profile": self.schema,
            "Content-Profile": self.schema,
        }

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json_data: Any = None,
        headers: Optional[Dict[str, str]] = None,
        attempts: Optional[int] = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        max_attempts = attempts or self.max_retries
        last_error: Optional[Exception] = None

        for attempt in range(1, max_attempts + 1):
            try:
                response = requests.request(
                    method=method,
                    url=url,
                    headers={**self._headers, **(headers or {})},
                    params=params,
                    json=json_data,
                    timeout=self.timeout_seconds,
                )
                if response.status_code in (429, 500, 502, 503, 504):
                    raise requests.HTTPError(response.text, response=response)
                response.raise_for_status()

                if not response.text:
                    return None
                return response.json()
            except (requests.RequestException, ValueError) as exc:
                last_error = exc
                if attempt >= max_attempts:
                    break
                LOGGER.debug("retrying %s %s after: %s", method, path, exc)
                time.sleep(min(2**attempt, 8))

        raise APIError(f"Store request failed for {method} {path}: {last_error}")

    @staticmethod
    def _table(kind: str) -> Sequence[str]:
        try:
            return RECORD_TABLES[kind]
        except KeyError:
            raise ValueError(f"Unknown record kind: {kind}") from None

    def fetch_all(self, user_id: str, kind: str) -> List[Dict[str, Any]]:
        """Return every record of a kind owned by user_id, oldest first."""
        table, _ = self._table(kind)
        rows: List[Dict[str, Any]] = []
        offset = 0

        while True:
            page = self._request(
                "GET",
                f"/{table}",
                params={
                    "select": "*",
                    "user_id": f"eq.{user_id}",
                    "order": "date.asc",
                    "limit": PAGE_SIZE,
                    "offset": offset,
                },
            )
            if not isinstance(page, list):
                break
            rows.extend(item for item in page if isinstance(item, dict))
            if len(page) < PAGE_SIZE:
                break
            offset += PAGE_SIZE

        LOGGER.debug("fetched %d %s rows for %s", len(rows), kind, user_id)
        return rows

    def upsert_batch(self, kind: str, rows: Sequence[Dict[str, Any]]) -> None:
        """Insert rows, replacing any that share the kind's uniqueness key.

        Writes are attempted once; failures raise APIError.
        """
        table, conflict_key = self._table(kind)
        self._request(
            "POST",
            f"/{table}",
            params={"on_conflict": conflict_key},
            json_data=list(rows),
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
            attempts=1,
        )
