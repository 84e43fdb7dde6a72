"""
Blob store API server.

Keeps the whole application state as one JSON document on disk and serves
it over GET/PUT/DELETE. No schema validation, no merging: last write wins.
"""

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional, Union

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from supply_admin.utils import get_logger

STATE_FILE_NAME = "app-state.json"


class StateFile:
    """The single JSON document behind the blob store."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def read(self) -> Optional[Any]:
        """Decoded document, or None when the file is missing or blank."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        if not raw.strip():
            return None
        return json.loads(raw)

    def write(self, state: Any) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".tmp-")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(state, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass


def create_app(data_file: Union[str, Path], api_prefix: str = "/api") -> FastAPI:
    """
    Create the blob store application.

    Args:
        data_file: Path of the JSON document
        api_prefix: Path prefix for every route

    Returns:
        FastAPI application
    """
    api_prefix = "/" + api_prefix.strip("/") if api_prefix.strip("/") else ""
    state_file = StateFile(data_file)
    logger = get_logger("blob_store_api")

    app = FastAPI(
        title="Supply Admin Blob Store",
        description="Stores the supply admin application state as a single JSON document",
        version="0.1.0",
    )
    app.state.state_file = state_file

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"API error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"message": "Internal server error."})

    @app.get(f"{api_prefix}/health")
    async def health_check():
        """Health check endpoint."""
        return {"ok": True}

    @app.get(f"{api_prefix}/app-state")
    async def read_state():
        """Return the stored document, or 204 when nothing is stored."""
        state = await asyncio.to_thread(state_file.read)
        if state is None:
            return Response(status_code=204)
        return JSONResponse(content=state)

    @app.put(f"{api_prefix}/app-state")
    async def write_state(request: Request):
        """Replace the stored document with the request body."""
        body = await request.body()
        try:
            state = json.loads(body) if body else None
        except (json.JSONDecodeError, UnicodeDecodeError):
            state = None
        if not isinstance(state, dict):
            return JSONResponse(status_code=400, content={"message": "Invalid state payload."})

        await asyncio.to_thread(state_file.write, state)
        logger.info(f"State document written to {state_file.path}")
        return Response(status_code=204)

    @app.delete(f"{api_prefix}/app-state")
    async def clear_state():
        """Remove the stored document; removing nothing is fine."""
        await asyncio.to_thread(state_file.clear)
        logger.info("State document cleared")
        return Response(status_code=204)

    return app
