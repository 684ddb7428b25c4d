#!/usr/bin/env python3
"""
Music Folio transcription endpoint.

Usage:
    AI_GATEWAY_API_KEY=... python server.py
    uvicorn server:app --port 8000
"""

import json
import logging
import os
import sys

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import config
from musicfolio import handler

logger = logging.getLogger(__name__)


def setup_logging():
    """Configure console logging for the server process."""
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def create_app() -> FastAPI:
    app = FastAPI(title="Music Folio")

    # Preflight (OPTIONS) is answered here
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ALLOW_ORIGINS,
        allow_methods=["POST", "OPTIONS"],
        allow_headers=config.CORS_ALLOW_HEADERS,
    )

    if not os.environ.get(config.API_KEY_ENV):
        logger.warning(f"{config.API_KEY_ENV} is not set; every transcription request will fail")

    @app.post("/transcribe-audio")
    async def transcribe_audio(request: Request):
        try:
            payload = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error(f"Invalid JSON body: {e}")
            return JSONResponse(status_code=500, content={"error": "Invalid JSON body", "success": False})

        status, content = await run_in_threadpool(handler.handle, payload)
        return JSONResponse(status_code=status, content=content)

    @app.get("/health")
    def health():
        return {"ok": True}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    setup_logging()
    uvicorn.run(app, host=config.HOST, port=config.PORT)
