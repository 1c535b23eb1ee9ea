# src/credgrain/api/__main__.py
from __future__ import annotations

import uvicorn

from credgrain.env import load_dotenv_if_present


def main() -> None:
    # Load .env early so CREDGRAIN_* vars exist before anything reads them.
    load_dotenv_if_present()

    from credgrain.api.app import create_app
    from credgrain.config import load_service_config
    from credgrain.structured_logging import configure_structured_logging

    cfg = load_service_config()
    configure_structured_logging(cfg.log_level)
    uvicorn.run(create_app(cfg), host=cfg.api_host, port=cfg.api_port, log_level=cfg.log_level.lower())


if __name__ == "__main__":
    main()
