from __future__ import annotations

import logging
from dataclasses import dataclass
from time import sleep
from typing import Any
from urllib.parse import quote

import httpx

from .config import DirectoryConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReadOperation:
    method: str
    path_template: str


READ_ONLY_OPERATIONS: dict[str, ReadOperation] = {
    "get_employee": ReadOperation("GET", "/employees/{employee_ref}"),
    "list_employees": ReadOperation("GET", "/employees"),
}


class EmployeeDirectoryClient:
    """Read-only client for the identity service that owns employee records.

    Only the operation names listed in READ_ONLY_OPERATIONS are executable.
    Timeouts, connection errors and 5xx responses are retried with
    exponential backoff; a 404 on ``get_employee`` means the employee does
    not exist.
    """

    def __init__(self, cfg: DirectoryConfig, *, retries: int = 3):
        self.cfg = cfg
        self.base_url = cfg.base_url.rstrip("/")
        self.retries = max(1, retries)

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.cfg.api_key:
            headers["Authorization"] = f"Bearer {self.cfg.api_key}"
        return headers

    def _request(
        self,
        *,
        operation: str,
        path_params: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
        allow_404: bool = False,
    ) -> httpx.Response:
        op = READ_ONLY_OPERATIONS.get(operation)
        if op is None:
            raise ValueError(f"Operation '{operation}' is not allowed in read-only mode")

        path = op.path_template.format(**{k: quote(v, safe="") for k, v in (path_params or {}).items()})
        url = f"{self.base_url}{path}"

        last_exc: Exception | None = None
        for attempt in range(self.retries):
            try:
                resp = httpx.request(
                    op.method,
                    url,
                    headers=self._headers(),
                    params=params,
                    timeout=self.cfg.timeout_s,
                )
                if resp.status_code >= 500 and attempt < self.retries - 1:
                    logger.warning("%s returned %s, retrying", operation, resp.status_code)
                    sleep(2**attempt)
                    continue
                if allow_404 and resp.status_code == 404:
                    return resp
                resp.raise_for_status()
                return resp
            except (httpx.TimeoutException, httpx.ConnectError) as exc:
                last_exc = exc
                if attempt < self.retries - 1:
                    logger.warning("%s failed (%s), retrying", operation, exc)
                    sleep(2**attempt)
                    continue
                raise
        if last_exc:
            raise last_exc
        raise RuntimeError("request failed without an explicit exception")

    def fetch_employee(self, employee_ref: str) -> dict[str, Any] | None:
        resp = self._request(
            operation="get_employee",
            path_params={"employee_ref": employee_ref},
            allow_404=True,
        )
        if resp.status_code == 404:
            return None
        data = resp.json()
        if isinstance(data, dict) and isinstance(data.get("data"), dict):
            return data["data"]
        return data if isinstance(data, dict) else None

    def exists(self, employee_ref: str) -> bool:
        return self.fetch_employee(employee_ref) is not None

    def list_employees(self) -> list[dict[str, Any]]:
        resp = self._request(operation="list_employees", params={"role": "employee"})
        payload = resp.json()
        if isinstance(payload, dict):
            data = payload.get("data")
            if isinstance(data, dict) and isinstance(data.get("employees"), list):
                return data["employees"]
            if isinstance(data, list):
                return data
            return payload.get("items", []) if isinstance(payload.get("items"), list) else []
        return payload if isinstance(payload, list) else []
