#!/usr/bin/env -S uv run
# -*- mode: python; -*-
# vim: set ft=python:
# /// script
# requires-python = ">=3.10"
# dependencies = [
#   "flask",
#   "pyyaml",
#   "requests",
# ]
# ///
"""
Propagation API server for the shack dashboard.

Run with: uv run tools/shack_web.py [--poll-pskreporter]
Access at: http://localhost:8787/api/propagation

Environment:
  PORT        listen port (default 8787)
  URL_PREFIX  mount point when running behind a reverse proxy
  FLASK_ENV   "development" enables debug mode
  LOCATOR, QTH_LAT, QTH_LON, CALLSIGN override the config file
"""

import argparse
import logging
import os
import sys
from pathlib import Path

# Add repo root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from shackprop.config import load_config
from shackprop.pskreporter import start_polling
from shackprop.service import PropagationService
from shackprop.web import create_app


def main():
    parser = argparse.ArgumentParser(description="Shack propagation API server")
    parser.add_argument("-c", "--config", type=Path, help="config file (YAML)")
    parser.add_argument("--poll-pskreporter", action="store_true",
                        help="feed the band map from PSKReporter reports of our callsign")
    args = parser.parse_args()

    debug = os.getenv('FLASK_ENV') == 'development'
    logging.basicConfig(level=logging.DEBUG if debug else logging.INFO,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    config = load_config(args.config)
    service = PropagationService(config)
    app = create_app(service)

    if args.poll_pskreporter:
        start_polling(service.spots, config["callsign"])
        print(f"Polling PSKReporter for {config['callsign']}")

    port = int(os.getenv('PORT', 8787))
    prefix = os.getenv('URL_PREFIX', '')
    print("Starting shack propagation API...")
    print(f"Station: {config['callsign']} @ {config['locator']}")
    print(f"Access at: http://localhost:{port}{prefix}/api/propagation")
    print(f"Debug mode: {debug}")
    # the reloader would start a second poller in the child process
    app.run(host="0.0.0.0", port=port, debug=debug, use_reloader=debug and not args.poll_pskreporter)


if __name__ == "__main__":
    main()
