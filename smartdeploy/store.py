"""
Deployment record store interface and the dashboard-API backed implementation.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)


class RecordStoreError(Exception):
    """Raised when the record store rejects or cannot serve a request."""


class DeploymentRecordStore(ABC):
    """Persisted deployment records keyed by a stable identifier."""

    @abstractmethod
    def get(self, record_id: str) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    def merge_patch(self, record_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        """Merge patch into the record; the store performs the merge."""
        pass

    @abstractmethod
    def add_history(self, record_id: str, entry: Dict[str, Any]) -> None:
        pass


class HttpRecordStore(DeploymentRecordStore):
    """Talks to the dashboard's deployment routes with a bearer token."""

    def __init__(self, base_url: str, token: Optional[str] = None, timeout: int = 10,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http = session or requests.Session()
        if token:
            self.http.headers["Authorization"] = f"Bearer {token}"

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self.http.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            raise RecordStoreError(f"Request to {url} failed: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if response.status_code >= 400 or body.get("status") == "error":
            message = body.get("message") or body.get("error") or response.reason
            raise RecordStoreError(f"{method} {path} returned {response.status_code}: {message}")
        return body

    def get(self, record_id: str) -> Optional[Dict[str, Any]]:
        body = self._request("GET", "/api/get-deployments")
        for deployment in body.get("deployments") or []:
            if deployment.get("id") == record_id:
                return deployment
        return None

    def merge_patch(self, record_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        payload = {**patch, "id": record_id}
        logger.debug(f"Merging {sorted(patch)} into deployment {record_id}")
        return self._request("POST", "/api/update-deployments", json=payload)

    def add_history(self, record_id: str, entry: Dict[str, Any]) -> None:
        payload = {**entry, "deploymentId": record_id}
        self._request("POST", "/api/deployment-history", json=payload)
