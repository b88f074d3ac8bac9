import re
import time
import uuid

from fastapi import Request, Response

_CID_RE = re.compile(r"^[A-Za-z0-9\-:]{3,64}$")


def request_cid(request: Request) -> str:
    """Correlation id: a well-formed incoming ``x-cid`` or a fresh one."""
    incoming = request.headers.get("x-cid") or ""
    return incoming if _CID_RE.match(incoming) else uuid.uuid4().hex


def apply_std_headers(response: Response, request: Request, started_at: float) -> None:
    """Apply standard headers to the response."""
    latency_ms = int((time.perf_counter() - started_at) * 1000)
    cid = getattr(request.state, "cid", None) or request_cid(request)
    response.headers["x-latency-ms"] = str(latency_ms)
    response.headers["x-cid"] = cid
    response.headers["Cache-Control"] = "no-store"
