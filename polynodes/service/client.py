from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

import requests

from .models import ExecutionResults, GraphFile, SaveReceipt

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """
    Raised when the execution/persistence service cannot be reached or
    answers with an error status.
    """

    def __init__(self, message: str, status: Optional[int] = None, body: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class ServiceClient:
    """
    Thin client for the graph execution and persistence service.

    Every call is a single blocking request; callers decide which thread it
    runs on.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()

    @property
    def base_url(self) -> str:
        return self._base_url

    def run_graph(self, graph: Mapping[str, Any]) -> ExecutionResults:
        payload = self._request("POST", "/run_graph", json={"model": graph})
        if not isinstance(payload, Mapping):
            raise ServiceError("Unexpected response from /run_graph.")
        try:
            return ExecutionResults.from_payload(payload)
        except ValueError as exc:
            raise ServiceError(str(exc)) from exc

    def list_graphs(self) -> List[GraphFile]:
        payload = self._request("GET", "/list_graphs")
        return [
            GraphFile(name=str(entry.get("name", "")), mtime=float(entry.get("mtime") or 0.0))
            for entry in payload or []
            if isinstance(entry, Mapping) and entry.get("name")
        ]

    def load_graph(self, name: str) -> Tuple[str, Dict[str, Any]]:
        payload = self._request("GET", "/load_graph", params={"name": name})
        if not isinstance(payload, Mapping):
            raise ServiceError(f"Unexpected response when loading '{name}'.")
        model = payload.get("model", payload.get("graph"))
        if not isinstance(model, Mapping):
            raise ServiceError(f"Graph '{name}' has no model.")
        return str(payload.get("name", name)), dict(model)

    def save_graph(self, name: str, graph: Mapping[str, Any]) -> SaveReceipt:
        name = self._require_name(name)
        payload = self._request("POST", "/save_graph", json={"name": name, "model": graph})
        return SaveReceipt(ok=self._ok(payload), filename=str((payload or {}).get("filename", "")))

    def delete_graph(self, name: str) -> bool:
        name = self._require_name(name)
        payload = self._request("POST", "/delete_graph", json={"name": name})
        return self._ok(payload)

    def list_images(self) -> List[str]:
        payload = self._request("GET", "/list_images")
        return [str(entry) for entry in payload or []]

    @staticmethod
    def _require_name(name: str) -> str:
        name = (name or "").strip()
        if not name:
            raise ValueError("Please enter a name for the graph.")
        return name

    @staticmethod
    def _ok(payload: Any) -> bool:
        if not isinstance(payload, Mapping):
            return False
        return bool(payload.get("success", payload.get("ok", False)))

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self._base_url}{path}"
        logger.debug("%s %s", method, url)
        try:
            response = self._session.request(method, url, timeout=self._timeout, **kwargs)
        except requests.RequestException as exc:
            raise ServiceError(f"Request to {path} failed: {exc}") from exc

        if not response.ok:
            raise ServiceError(
                f"API Error: {response.status_code} {response.reason} - {response.text}",
                status=response.status_code,
                body=response.text,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise ServiceError(f"Invalid JSON from {path}", status=response.status_code) from exc
