from __future__ import annotations

import hashlib
import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def audit(
    path: str,
    event: str,
    user: Optional[str],
    complaint: Optional[str],
    details: Dict[str, Any],
) -> None:
    """Append an audit entry as a JSON line to ``path``.

    Complaint text never reaches the log, only a short digest of it. An empty
    ``path`` disables auditing.
    """

    if not path:
        return
    record: Dict[str, Any] = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "event": event,
        "user": user,
        "hash_complaint": (
            hashlib.blake2b(complaint.encode("utf-8"), digest_size=16).hexdigest()
            if complaint
            else None
        ),
    }
    if details:
        record.update(details)
    try:
        folder = os.path.dirname(path)
        if folder:
            os.makedirs(folder, exist_ok=True)
        with open(path, "a", encoding="utf-8") as fh:
            fh.write(json.dumps(record, sort_keys=True) + "\n")
    except OSError as exc:  # pragma: no cover - rare
        logging.getLogger("complaint_response_app").warning(
            "failed to write audit log: %s", exc
        )


__all__ = ["audit"]
