from __future__ import annotations

import logging
import time
from typing import Dict, List, Optional, Tuple

import httpx
from pydantic import ValidationError

from complaint_response_app.core.schemas import (
    GenerationRequest,
    GenerationResult,
    SavedResponseRecord,
    SavedResponsesPayload,
    SaveResult,
)

log = logging.getLogger("complaint_response_app")

PROCESS_PATH = "/api/processComplaint"
SAVE_PATH = "/api/saveResponse"
LIST_PATH = "/api/GetSavedResponses"

# (filename, content, content_type) as accepted by httpx ``files=``
FilePart = Tuple[str, bytes, str]


class ComplaintsApiError(Exception):
    """Generic complaints API failure."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class ComplaintsApiTimeout(ComplaintsApiError):
    pass


class ComplaintsApiBadResponse(ComplaintsApiError):
    pass


class ComplaintsApiClient:
    """Thin httpx wrapper around the external complaints REST API.

    The caller's identity cookies are forwarded untouched; the API enforces
    its own authorization.
    """

    def __init__(self, base_url: str, timeout_s: float = 60.0):
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _headers(self, cookie: Optional[str]) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if cookie:
            headers["Cookie"] = cookie
        return headers

    def _send(self, method: str, path: str, **kwargs) -> dict:
        url = self._url(path)
        start = time.perf_counter()
        try:
            resp = httpx.request(method, url, timeout=self.timeout_s, **kwargs)
        except httpx.TimeoutException as e:
            log.warning("complaints api timeout: %s %s", method, path)
            raise ComplaintsApiTimeout("complaints api timeout") from e
        except httpx.HTTPError as e:
            log.warning("complaints api transport error: %s %s: %s", method, path, e)
            raise ComplaintsApiError(f"transport error: {e}") from e
        latency_ms = int((time.perf_counter() - start) * 1000)
        log.info(
            "complaints api %s %s -> %s (%d ms)", method, path, resp.status_code, latency_ms
        )
        if not resp.is_success:
            raise ComplaintsApiBadResponse(
                f"bad status: {resp.status_code}", status=resp.status_code
            )
        try:
            data = resp.json()
        except ValueError as e:
            raise ComplaintsApiBadResponse(
                "response body is not JSON", status=resp.status_code
            ) from e
        if not isinstance(data, dict):
            raise ComplaintsApiBadResponse(
                "response body is not an object", status=resp.status_code
            )
        return data

    def process_complaint(
        self, request: GenerationRequest, cookie: Optional[str] = None
    ) -> GenerationResult:
        data = self._send(
            "POST",
            PROCESS_PATH,
            json=request.to_wire(),
            headers=self._headers(cookie),
        )
        try:
            return GenerationResult.model_validate(data)
        except ValidationError as e:
            raise ComplaintsApiBadResponse("unexpected processComplaint payload") from e

    def save_response(
        self,
        fields: Dict[str, str],
        document: Optional[FilePart] = None,
        cookie: Optional[str] = None,
    ) -> SaveResult:
        # Plain fields travel as filename-less parts so the body is always
        # multipart/form-data, with or without a document.
        files: List[Tuple[str, tuple]] = [
            (name, (None, value)) for name, value in fields.items()
        ]
        if document is not None:
            files.append(("document", document))
        data = self._send("POST", SAVE_PATH, files=files, headers=self._headers(cookie))
        try:
            return SaveResult.model_validate(data)
        except ValidationError as e:
            raise ComplaintsApiBadResponse("unexpected saveResponse payload") from e

    def get_saved_responses(self, cookie: Optional[str] = None) -> List[SavedResponseRecord]:
        data = self._send("GET", LIST_PATH, headers=self._headers(cookie))
        try:
            return SavedResponsesPayload.model_validate(data).responses
        except ValidationError as e:
            raise ComplaintsApiBadResponse("unexpected GetSavedResponses payload") from e


__all__ = [
    "ComplaintsApiClient",
    "ComplaintsApiError",
    "ComplaintsApiTimeout",
    "ComplaintsApiBadResponse",
    "FilePart",
]
