# src/credgrain/api/routes_public.py
from __future__ import annotations

from fastapi import APIRouter

from credgrain.api.routes_public_parts.allocations import router as allocations_router
from credgrain.api.routes_public_parts.health import router as health_router
from credgrain.api.routes_public_parts.metrics import router as metrics_router
from credgrain.api.routes_public_parts.mint_budget import router as mint_budget_router

public_router = APIRouter()

public_router.include_router(health_router, prefix="", tags=["health"])
public_router.include_router(allocations_router, prefix="/v1", tags=["allocations"])
public_router.include_router(mint_budget_router, prefix="/v1", tags=["mint-budget"])

# Ops
public_router.include_router(metrics_router, prefix="/v1", tags=["metrics"])
