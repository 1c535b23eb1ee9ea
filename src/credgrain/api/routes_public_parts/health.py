from __future__ import annotations

import time

from fastapi import APIRouter, Request

from credgrain import __version__
from credgrain.api.routes_public_parts.common import _cfg

router = APIRouter()


def _now_ms() -> int:
    return int(time.time() * 1000)


def _health_payload(request: Request) -> dict[str, object]:
    cfg = _cfg(request)
    return {
        "ok": True,
        "service": "credgrain",
        "version": __version__,
        "ts_ms": _now_ms(),
        "mode": cfg.mode,
    }


@router.get("/v1/health")
def v1_health(request: Request) -> dict[str, object]:
    return _health_payload(request)


@router.get("/healthz")
def healthz(request: Request) -> dict[str, object]:
    # Kubernetes-style alias
    return _health_payload(request)
