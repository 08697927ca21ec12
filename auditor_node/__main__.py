# auditor_node/__main__.py
"""
Entry point for running the Auditor Node as a module:
    python -m auditor_node [--host 0.0.0.0] [--port 8000] [--config ./auditor_config.yaml]
                           [--data-dir ./data] [--no-persist]
Env toggles:
  AUDITOR_CONFIG=...        -> settings YAML path
  AUDITOR_LOG_LEVEL=DEBUG   -> log verbosity
"""

from __future__ import annotations

import argparse
import os

import uvicorn

from .auditor_api import create_app
from .settings import load_settings


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        prog="auditor-node",
        description="Run the Auditor Node (stake-weighted auditor election API)",
    )
    p.add_argument(
        "--config",
        default=os.environ.get("AUDITOR_CONFIG", "auditor_config.yaml"),
        help="Settings YAML (default: auditor_config.yaml)",
    )
    p.add_argument("--host", default=None, help="Bind address (overrides settings)")
    p.add_argument("--port", type=int, default=None, help="HTTP port (overrides settings)")
    p.add_argument("--data-dir", default=None, help="State directory (overrides settings)")
    p.add_argument(
        "--no-persist",
        action="store_true",
        help="Keep state in memory only",
    )
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    settings = load_settings(args.config)

    if args.host:
        settings.server.host = args.host
    if args.port:
        settings.server.port = args.port
    if args.data_dir:
        settings.node.data_dir = args.data_dir
    if args.no_persist:
        settings.persistence.enabled = False

    app = create_app(settings)
    uvicorn.run(app, host=settings.server.host, port=settings.server.port)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
