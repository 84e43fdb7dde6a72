#!/usr/bin/env python3
"""
Blob store server launcher.

Serves the application state document over HTTP.

Usage:
    python scripts/run_blob_store.py                     # PORT / API_PREFIX / DATA_DIR from env
    python scripts/run_blob_store.py --port 4100         # Override the port
    python scripts/run_blob_store.py --data-dir /srv/sa  # Store the document elsewhere
"""

import argparse
import os
import sys
from pathlib import Path

import uvicorn

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from supply_admin.api import STATE_FILE_NAME, create_app
from supply_admin.utils import get_logger


def main() -> None:
    """Parse arguments and run the server."""
    parser = argparse.ArgumentParser(description="Run the supply admin blob store API")
    parser.add_argument("--host", default="0.0.0.0", help="Interface to bind")
    parser.add_argument("--port", type=int, default=int(os.environ.get("PORT", 4000)),
                        help="Port to listen on (default: $PORT or 4000)")
    parser.add_argument("--api-prefix", default=os.environ.get("API_PREFIX", "/api"),
                        help="Route prefix (default: $API_PREFIX or /api)")
    parser.add_argument("--data-dir",
                        default=os.environ.get("DATA_DIR", str(Path(__file__).parent.parent / "data")),
                        help="Directory for the state document (default: $DATA_DIR or ./data)")
    args = parser.parse_args()

    logger = get_logger("run_blob_store")

    data_dir = Path(args.data_dir)
    try:
        data_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error(f"Failed to create data directory {data_dir}: {e}")
        sys.exit(1)

    data_file = data_dir / STATE_FILE_NAME
    app = create_app(data_file, api_prefix=args.api_prefix)

    logger.info(f"Supply Admin API server listening on http://localhost:{args.port}{args.api_prefix}")
    logger.info(f"Data file: {data_file}")

    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
