from __future__ import annotations

import json
from typing import Any, Dict

from fastapi import Request

from credgrain.api.errors import ApiError
from credgrain.config import ServiceConfig, default_service_config

Json = Dict[str, Any]


def _cfg(request: Request) -> ServiceConfig:
    cfg = getattr(request.app.state, "cfg", None)
    return cfg if isinstance(cfg, ServiceConfig) else default_service_config()


async def _json_object(request: Request) -> Json:
    """Read the request body; it must be a JSON object."""
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ApiError.bad_request("bad_request", "Body must be valid JSON", {"error": str(e)}) from e
    if not isinstance(body, dict):
        raise ApiError.bad_request("bad_request", "Body must be a JSON object", {})
    return body


def _require_key(body: Json, key: str) -> Any:
    if key not in body:
        raise ApiError.bad_request("missing_field", f"Body must include '{key}'", {"field": key})
    return body[key]
