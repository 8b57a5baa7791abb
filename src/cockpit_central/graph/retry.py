# src/cockpit_central/graph/retry.py

"""
Self-healing writes for lists whose columns change under our feet.

Column discovery can be stale (column renamed or deleted since) or missing
(discovery failed). When the server answers that a field is not recognized,
the field is stripped from the payload and the request is sent once more.
One retry only: a payload that keeps failing must surface its error.
"""

from __future__ import annotations

import copy
import json
import logging
import re
from collections.abc import Callable
from typing import Any

from ..core.errors import GraphHTTPError
from ..core.ports import ListApi
from ..tasks.normalize import norm_key

logger = logging.getLogger(__name__)

ErrorClassifier = Callable[[BaseException], str | None]

UNKNOWN_FIELD_RE = re.compile(r"Field\s+'([^']+)'\s+is\s+not\s+recognized", re.IGNORECASE)


def extract_unknown_field_name(err: BaseException) -> str | None:
    """
    Graph wording: "Field 'DueDate' is not recognized".

    GraphHTTPError renders as "<status> <reason>: <body>", so the message
    usually sits inside a JSON envelope ({"error": {"message": ...}}). The
    raw text is searched first, the decoded envelope second (escaped quotes).
    """
    msg = str(err)

    m = UNKNOWN_FIELD_RE.search(msg)
    if m:
        return m.group(1)

    idx = msg.find('{"error"')
    if idx >= 0:
        try:
            envelope, _ = json.JSONDecoder().raw_decode(msg[idx:])
        except ValueError:
            return None
        inner = ((envelope or {}).get("error") or {}).get("message") if isinstance(envelope, dict) else None
        m2 = UNKNOWN_FIELD_RE.search(str(inner or ""))
        if m2:
            return m2.group(1)
    return None


def strip_field(fields: dict[str, Any], name: str) -> bool:
    """Remove `name` (exact key, else every normalized-equal key). Returns True if removed."""
    if name in fields:
        del fields[name]
        return True

    wanted = norm_key(name)
    hits = [k for k in fields if norm_key(k) == wanted]
    for k in hits:
        del fields[k]
    return bool(hits)


async def send_with_field_fallback(
    api: ListApi,
    method: str,
    url: str,
    payload: dict[str, Any],
    *,
    fields_path: str | None = "fields",
    classifier: ErrorClassifier = extract_unknown_field_name,
    on_strip: Callable[[str], None] | None = None,
) -> Any:
    """
    Send `payload`; on an unknown-field error strip that field and retry once.

    fields_path: key holding the field map inside payload ("fields" for item
    creation), or None when the payload itself is the field map (PATCH on
    .../fields).
    """
    try:
        return await api.request_json(method, url, json_body=payload)
    except GraphHTTPError as e:
        unknown = classifier(e)
        if not unknown:
            raise

        retry_payload = copy.deepcopy(payload)
        fields = retry_payload.get(fields_path) if fields_path else retry_payload
        if not isinstance(fields, dict) or not strip_field(fields, unknown):
            raise

        logger.warning("Field %r not recognized by the list; retrying %s without it", unknown, method)
        if on_strip is not None:
            on_strip(unknown)

    return await api.request_json(method, url, json_body=retry_payload)
