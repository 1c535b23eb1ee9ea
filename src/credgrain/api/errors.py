# src/credgrain/api/errors.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from credgrain.ledger.errors import CredGrainError, InvariantError


@dataclass(eq=False)
class ApiError(Exception):
    status_code: int
    code: str
    message: str
    details: Dict[str, Any]

    @staticmethod
    def bad_request(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(400, code, message, details or {})

    @staticmethod
    def too_large(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(413, code, message, details or {})

    @staticmethod
    def from_core(e: CredGrainError) -> "ApiError":
        """Input and schedule errors are the caller's to fix; invariant errors are ours."""
        status = 500 if isinstance(e, InvariantError) else 400
        return ApiError(status, e.code, e.reason, dict(e.details or {}))

    def to_json(self) -> Dict[str, Any]:
        return {"ok": False, "error": {"code": self.code, "message": self.message, "details": self.details}}
