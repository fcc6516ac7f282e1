"""
ChainSlots main application entry point.
FastAPI app exposing the slot machine over HTTP, with a WebSocket for the
paced reel reveal.
"""

import sys
from pathlib import Path
from typing import Optional

# Add parent directory to path so imports work when running directly
if __name__ == "__main__":
    sys.path.insert(0, str(Path(__file__).parent.parent))

import orjson
import uvicorn
from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from chainslots.config import settings
from chainslots.core.exceptions import LedgerError
from chainslots.core.logger import get_logger, init_logging
from chainslots.core.machine import ReelStopped, SlotMachine
from chainslots.core.money import display
from chainslots.routers import api

# Initialize logging first
init_logging(
    level=settings.logging.level,
    log_to_file=settings.logging.log_to_file,
    formatter=settings.logging.formatter,
    log_file_path=settings.paths.get_log_path(),
)
logger = get_logger("main")
ws_logger = get_logger("websocket")


def error_payload(exc: LedgerError) -> dict:
    return {"error": type(exc).__name__, "detail": exc.message}


# ==================== Application Setup ====================


def create_app(machine: Optional[SlotMachine] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.server.name,
        docs_url="/docs" if settings.server.debug else None,
        redoc_url=None,
    )
    app.state.machine = machine or SlotMachine.from_settings(settings)

    # CORS middleware (for development)
    if settings.server.debug:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(api.router, prefix="/api")

    @app.exception_handler(LedgerError)
    async def ledger_error_handler(request: Request, exc: LedgerError):
        return JSONResponse(status_code=exc.status_code, content=error_payload(exc))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle unhandled exceptions gracefully."""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "detail": str(exc) if settings.server.debug else None,
            },
        )

    app.add_api_websocket_route("/ws", websocket_endpoint)

    return app


# ==================== WebSocket Endpoint ====================


async def _send_json(websocket: WebSocket, data: dict):
    await websocket.send_bytes(orjson.dumps(data))


async def _handle_spin(websocket: WebSocket, machine: SlotMachine, message: dict):
    try:
        pending = machine.place_bet(message.get("bet"))
    except LedgerError as e:
        await _send_json(websocket, {"type": "error", **error_payload(e)})
        return

    await _send_json(
        websocket,
        {
            "type": "spin_started",
            "spin_id": pending.spin_id,
            "bet": display(pending.bet),
            "balance": display(machine.wallet.balance),
        },
    )

    async def on_reel(event: ReelStopped):
        await _send_json(websocket, event.to_dict())

    settlement = await machine.reveal_reels_and_resolve(on_reel)
    if settlement is None:
        await _send_json(websocket, {"type": "spin_cancelled", "spin_id": pending.spin_id})
    else:
        await _send_json(websocket, {"type": "spin_result", **settlement.to_dict()})


async def websocket_endpoint(websocket: WebSocket):
    """
    Real-time spin channel.
    Supports:
    - spin: stream reel stops then the settled result
    - state: full wallet/ledger snapshot
    - ping
    """
    machine: SlotMachine = websocket.app.state.machine
    client = websocket.client.host if websocket.client else "unknown"

    await websocket.accept()
    ws_logger.info("WebSocket connected", extra={"client_ip": client})

    try:
        while True:
            data = await websocket.receive_text()

            try:
                message = orjson.loads(data)
            except orjson.JSONDecodeError:
                await _send_json(websocket, {"type": "error", "error": "BadMessage", "detail": "Invalid JSON"})
                continue
            if not isinstance(message, dict):
                await _send_json(websocket, {"type": "error", "error": "BadMessage", "detail": "Expected an object"})
                continue

            msg_type = message.get("type")

            if msg_type == "spin":
                await _handle_spin(websocket, machine, message)

            elif msg_type == "state":
                await _send_json(websocket, {"type": "state", **machine.snapshot()})

            elif msg_type == "ping":
                await _send_json(websocket, {"type": "pong"})

            else:
                await _send_json(
                    websocket,
                    {"type": "error", "error": "BadMessage", "detail": f"Unknown message type: {msg_type}"},
                )

    except WebSocketDisconnect as e:
        ws_logger.info(
            "WebSocket disconnected",
            extra={"client_ip": client, "ws_disconnect_code": e.code},
        )


app = create_app()

logger.info(f"Application '{settings.server.name}' initialized")


# ==================== Main Entry Point ====================

if __name__ == "__main__":
    logger.info(f"Starting server on {settings.server.host}:{settings.server.port}")
    uvicorn.run(
        "chainslots.main:app",
        host=settings.server.host,
        port=settings.server.port,
        reload=settings.server.debug,
    )
