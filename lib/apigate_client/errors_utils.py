from __future__ import annotations

import json

from .errors import ServerError


def parse_api_error_detail(details: str | None) -> dict | None:
    if not details:
        return None
    try:
        data = json.loads(details)
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def describe_error(err: ServerError) -> str:
    detail = parse_api_error_detail(err.details)
    if detail and isinstance(detail.get("errors"), list):
        parts = [str(e) for e in detail["errors"]]
        return f"{err.message} ({'; '.join(parts)})"
    return err.message
