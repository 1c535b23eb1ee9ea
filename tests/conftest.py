from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest

# Ensure local "src/" takes precedence over any globally-installed "credgrain" package.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

src_str = str(SRC)
if src_str not in sys.path:
    sys.path.insert(0, src_str)


@pytest.fixture(autouse=True)
def _clean_credgrain_env(monkeypatch):
    for name in (
        "CREDGRAIN_CONFIG_PATH",
        "CREDGRAIN_MODE",
        "CREDGRAIN_API_HOST",
        "CREDGRAIN_API_PORT",
        "CREDGRAIN_LOG_LEVEL",
        "CREDGRAIN_MAX_IDENTITIES",
        "CREDGRAIN_MAX_REQUEST_BYTES",
        "CREDGRAIN_METRICS_ENABLED",
    ):
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture(autouse=True)
def _restore_root_logging():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    if hasattr(root, "_credgrain_configured"):
        delattr(root, "_credgrain_configured")
