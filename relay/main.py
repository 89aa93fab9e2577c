# main.py - FastAPI relay server (rooms + broadcast over WebSocket)
import asyncio

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from relay.config import HOST, LOG_FILE, LOG_LEVEL, PORT
from relay.logging_config import get_logger, setup_logging
from relay.session_manager import SessionManager

setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)

app = FastAPI()

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

session_manager = SessionManager()


@app.get("/api/health")
async def health_check():
    return {
        "status": "ok",
        "message": "Relay server is running",
        **session_manager.stats(),
    }


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    await websocket.accept()
    manager = session_manager
    session = await manager.connect(websocket)

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))

            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes")
            await manager.handle_message(session, raw)

    except WebSocketDisconnect:
        logger.info(f"[WebSocket] {session.id} disconnected")
    except Exception as e:
        logger.error(f"[WebSocket] Error with {session.id}: {e}", exc_info=True)
    finally:
        # Must finish even if this task is being cancelled
        await asyncio.shield(manager.disconnect(session))


if __name__ == "__main__":
    import uvicorn
    logger.info(f"Starting relay server on {HOST}:{PORT}")
    uvicorn.run(app, host=HOST, port=PORT)
