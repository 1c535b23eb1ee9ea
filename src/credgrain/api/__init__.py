# src/credgrain/api/__init__.py
"""HTTP surface (FastAPI) over the allocation and minting budget core."""
