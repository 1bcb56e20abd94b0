"""WebSocket handler for streaming word submissions."""
import asyncio
import logging
from fastapi import WebSocket, WebSocketDisconnect

from api.services.streaming import StreamingProgressReporter, StreamEvent
from api.services.submission import WordListValidationError, validate_word_list
from shared.config import settings

logger = logging.getLogger(__name__)


async def _watch_disconnect(websocket: WebSocket, disconnected: asyncio.Event):
    """Drain client messages until the client goes away."""
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
    except Exception as e:
        logger.debug(f"WebSocket receive loop ended: {e}")
    finally:
        disconnected.set()


async def stream_words_endpoint(websocket: WebSocket, reporter: StreamingProgressReporter):
    """
    Stream word processing progress over a WebSocket.

    The client sends {"words": [...]} once after connecting; every event is
    sent back as one JSON frame and the server closes the socket after "end".
    """
    await websocket.accept()

    try:
        payload = await websocket.receive_json()
        words = validate_word_list(
            payload.get("words") if isinstance(payload, dict) else None,
            settings.stream_max_words,
            allow_blank=True
        )
    except WebSocketDisconnect:
        logger.info("WebSocket client disconnected before sending words")
        return
    except WordListValidationError as e:
        await websocket.send_json({"type": StreamEvent.ERROR, "error": e.reason, "message": e.message})
        await websocket.close(code=1008)
        return
    except ValueError:
        await websocket.send_json({"type": StreamEvent.ERROR, "error": "invalid_json", "message": "Expected a JSON object"})
        await websocket.close(code=1003)
        return

    disconnected = asyncio.Event()
    watcher = asyncio.create_task(_watch_disconnect(websocket, disconnected))

    async def is_disconnected() -> bool:
        return disconnected.is_set()

    events = reporter.stream(words, is_disconnected=is_disconnected)
    try:
        async for event in events:
            await websocket.send_json(event)
        await websocket.close()
    except WebSocketDisconnect:
        logger.info("WebSocket client disconnected during stream")
    finally:
        await events.aclose()
        watcher.cancel()
