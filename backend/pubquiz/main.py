import asyncio
import json
import logging
import uuid
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import Body, FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from . import projector
from .db import QuestionBank, settings
from .events import Hub
from .game import HANDLERS, GameController

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

hub = Hub()
controller = GameController(hub=hub, question_bank=QuestionBank(settings.QUESTIONS_FILE))


@asynccontextmanager
async def lifespan(_: FastAPI):
    await asyncio.to_thread(controller.question_bank.reload)
    yield


app = FastAPI(title="Pub Quiz API", lifespan=lifespan)

origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]
origin_regex = settings.CORS_ORIGIN_REGEX or None

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins or ["*"],
    allow_origin_regex=origin_regex,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/api/state")
async def get_state():
    return projector.public_game_state(controller.session)


@app.get("/api/players")
async def get_players():
    return projector.players_with_scores(controller.session)


@app.get("/api/categories")
async def get_categories():
    return projector.category_votes(controller.session, controller.bank_counts())


@app.get("/api/skip-votes")
async def get_skip_votes():
    return projector.skip_votes(controller.session)


@app.get("/api/events")
async def list_events(after: Optional[int] = None, limit: int = 200):
    events = hub.list(after=after, limit=limit)
    latest_seq = events[-1]["seq"] if events else after
    return {"events": events, "latest_seq": latest_seq}


@app.post("/api/actions/{action}")
async def run_action(action: str, payload: Any = Body(default=None)):
    if action not in HANDLERS:
        raise HTTPException(status_code=404, detail=f"Unknown action: {action}")
    messages = await controller.dispatch(action, payload)
    return {"messages": [m.model_dump(exclude={"unicast"}) for m in messages if m.unicast]}


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    await websocket.accept()
    connection_id = uuid.uuid4().hex
    player_name: Optional[str] = None
    logger.info("Client connected: %s", connection_id)

    async with controller.lock:
        for message in controller.snapshot():
            await websocket.send_json({"event": message.event, "data": message.data})
        hub.subscribe(connection_id, websocket)

    try:
        while True:
            try:
                frame = json.loads(await websocket.receive_text())
            except ValueError:
                logger.debug("Ignoring non-JSON frame from %s", connection_id)
                continue
            if not isinstance(frame, dict):
                continue
            action = frame.get("type")
            if not isinstance(action, str) or action == "disconnect":
                continue

            messages = await controller.dispatch(action, frame.get("data"), origin=connection_id)
            for message in messages:
                if message.event == "nameUpdated":
                    player_name = message.data["name"]
    except WebSocketDisconnect:
        logger.info("Client disconnected: %s", connection_id)
    finally:
        hub.unsubscribe(connection_id)
        if player_name:
            await controller.dispatch("disconnect", {"playerName": player_name})
