"""Entry point for the Binance relay service."""

from __future__ import annotations

import logging
from typing import Any, Dict

import uvicorn

from src.core.utils import load_config, resolve_environment_variables, setup_structured_logging
from src.frontend.server import create_app


def main() -> None:
    """Load config, configure logging, and serve the relay with uvicorn."""
    config = _load_config()
    setup_structured_logging(config)

    app = create_app(config=config)
    frontend_cfg = config.get("frontend", {}) or {}
    host = frontend_cfg.get("host", "0.0.0.0")
    port = int(frontend_cfg.get("port", 3000) or 3000)
    log_level = str((config.get("general", {}) or {}).get("log_level", "info") or "info").lower()

    logging.info("Binance relay listening on http://%s:%s", host, port)
    try:
        uvicorn.run(app, host=host, port=port, log_level=log_level)
    except KeyboardInterrupt:
        logging.info("Keyboard interrupt received; stopping relay.")


def _load_config() -> Dict[str, Any]:
    """Load YAML configuration (config.yaml or the sample) and apply env overrides."""
    return resolve_environment_variables(load_config())


if __name__ == "__main__":
    main()
