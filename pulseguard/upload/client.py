"""
PulseGuard Reporting Client

Uploads pipeline results to the Open Pulse project API:
- POST {base}/update-secrets/{projectId}   JSON array of secret records
- POST {base}/update-configs/{projectId}   JSON Trivy config report
- POST {base}/{projectId}/update-sbom      multipart SBOM upload

Credential headers are attached only when set. Any non-2xx answer or
transport error is raised as UploadFailed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import requests

from pulseguard.core.config import DEFAULT_UPLOAD_TIMEOUT, PulseGuardConfig
from pulseguard.core.errors import MissingConfiguration, UploadFailed

logger = logging.getLogger(__name__)


@dataclass
class UploadResult:
    url: str
    status_code: int
    body: Any


class ReportingClient:
    """HTTP client for one project on the reporting API."""

    def __init__(
        self,
        base_url: str,
        project_id: Optional[str],
        api_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        tenant_key: Optional[str] = None,
        timeout: int = DEFAULT_UPLOAD_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not project_id:
            raise MissingConfiguration("PROJECT_ID")

        self.base_url = base_url.rstrip("/")
        self.project_id = project_id
        self.api_key = api_key
        self.secret_key = secret_key
        self.tenant_key = tenant_key
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(
        cls,
        config: PulseGuardConfig,
        session: Optional[requests.Session] = None,
    ) -> "ReportingClient":
        return cls(
            base_url=config.api.base_url,
            project_id=config.api.project_id,
            api_key=config.api.api_key,
            secret_key=config.api.secret_key,
            tenant_key=config.api.tenant_key,
            timeout=config.api.timeout,
            session=session,
        )

    def credential_headers(self) -> dict[str, str]:
        headers = {}
        if self.api_key:
            headers["x-api-key"] = self.api_key
        if self.secret_key:
            headers["x-secret-key"] = self.secret_key
        if self.tenant_key:
            headers["x-tenant-key"] = self.tenant_key
        return headers

    def upload_secrets(self, records: list[dict[str, Any]]) -> UploadResult:
        """Send every mapped secret record in a single request."""
        url = f"{self.base_url}/update-secrets/{self.project_id}"
        logger.info("Uploading %d secret finding(s) to %s", len(records), url)
        return self._post(url, json=records)

    def upload_configs(self, report: dict[str, Any]) -> UploadResult:
        url = f"{self.base_url}/update-configs/{self.project_id}"
        logger.info("Uploading config scan report to %s", url)
        return self._post(url, json=report)

    def upload_sbom(
        self,
        sbom_path: Path,
        display_name: str = "sbom",
        branch_name: str = "main",
    ) -> UploadResult:
        url = f"{self.base_url}/{self.project_id}/update-sbom"
        logger.info("Uploading SBOM %s to %s", sbom_path, url)
        with open(sbom_path, "rb") as fh:
            files = {"sbomFile": (Path(sbom_path).name, fh, "application/json")}
            data = {"displayName": display_name, "branchName": branch_name}
            return self._post(url, files=files, data=data)

    def _post(self, url: str, **kwargs: Any) -> UploadResult:
        headers = self.credential_headers()
        if "json" in kwargs:
            headers["Content-Type"] = "application/json"

        try:
            response = self.session.post(url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            logger.error("No response from %s: %s", url, exc)
            raise UploadFailed(url, str(exc)) from exc

        body = _response_body(response)
        if not 200 <= response.status_code < 300:
            logger.error(
                "API responded with %s %s: %s", response.status_code, response.reason, body
            )
            raise UploadFailed(
                url,
                f"HTTP {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )

        logger.info("Upload accepted. Status: %s", response.status_code)
        logger.debug("Response body: %s", body)
        return UploadResult(url=url, status_code=response.status_code, body=body)


def _response_body(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text
