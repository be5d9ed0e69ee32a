"""Turn checkout API error responses into readable Locust failure messages.

Two shapes come back:

- Request schema errors (422): {"detail": [{"loc": [...], "msg": "..."}]}
- Domain errors (400/404): {"error": {"field": ["msg"]}} or {"error": "msg"}
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from requests import Response


def _join(messages) -> str:
    if isinstance(messages, list):
        return ", ".join(str(m) for m in messages)
    return str(messages)


def extract_error_detail(response: Response) -> str:
    try:
        body = response.json()
    except ValueError:
        text = getattr(response, "text", "") or ""
        return text[:300] or "(empty response body)"

    if isinstance(body.get("detail"), list):
        parts = []
        for err in body["detail"]:
            loc = ".".join(str(p) for p in err.get("loc", []))
            msg = err.get("msg", str(err))
            parts.append(f"{loc}: {msg}" if loc else msg)
        return " | ".join(parts)

    error = body.get("error")
    if isinstance(error, dict):
        return " | ".join(f"{field}: {_join(msgs)}" for field, msgs in error.items())
    if error is not None:
        return str(error)

    return str(body)[:300]
