# Entry point for the FastAPI app
from fastapi import FastAPI, Request, HTTPException
import logging
from typing import Any, Dict

from . import config, settings_store
from .interceptor import Interceptor
from .models.lore_entry import LoreEntry, WorldBook
from .selection import InvalidEntryIdError
from .session import Session, SessionManager

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI()

sessions = SessionManager()
interceptor = Interceptor()

default_message = {"status": "ok", "service": config.MODULE_NAME}


@app.on_event("startup")
def startup_event():
    settings_store.init_settings_db()
    logger.info(f"[STARTUP] Settings store ready at {settings_store.DB_PATH}")
    logger.info(f"[STARTUP] Host convention: {interceptor.convention}")


def get_session(request: Request) -> Session:
    session_id = request.headers.get("X-Session-Id") or "default"
    return sessions.get(session_id)


async def read_json(request: Request) -> Dict[str, Any]:
    try:
        data = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Body must be JSON")
    if not isinstance(data, dict):
        raise HTTPException(status_code=400, detail="Body must be a JSON object")
    return data


def selection_response(session: Session) -> Dict[str, Any]:
    return {
        "selection": session.selection.to_dict(),
        "displayStates": {
            str(entry_id): state.value for entry_id, state in session.display_states().items()
        },
        "notifications": [t.to_dict() for t in session.notifier.drain()],
    }


@app.get("/")
def root():
    return default_message


@app.delete("/session")
def drop_session(request: Request):
    """Forget the caller's session (selection, lore book and pending toasts)."""
    session_id = request.headers.get("X-Session-Id") or "default"
    return {"status": "ok", "dropped": sessions.drop(session_id)}


@app.put("/worldbook")
async def load_worldbook(request: Request):
    """Load the lore book the user has open, replacing the known entries."""
    session = get_session(request)
    data = await read_json(request)
    try:
        world_book = WorldBook.from_payload(data)
    except InvalidEntryIdError as e:
        raise HTTPException(status_code=422, detail=str(e))
    session.registry.load(world_book)
    return selection_response(session)


@app.post("/worldbook/entries")
async def add_entry(request: Request):
    """Report an entry the host added to the open lore book."""
    session = get_session(request)
    data = await read_json(request)
    try:
        entry = LoreEntry.from_payload(data)
    except InvalidEntryIdError as e:
        raise HTTPException(status_code=422, detail=str(e))
    session.registry.add(entry)
    return selection_response(session)


@app.post("/selection/mark")
async def mark_entry(request: Request):
    """Toggle a start/end marker on an entry.

    Body: {"entryId": "12", "markerType": "start" | "end"}
    """
    session = get_session(request)
    data = await read_json(request)
    try:
        session.mark_entry(data.get("entryId"), data.get("markerType"))
    except ValueError as e:
        logger.warning(f"[MARK] Rejected mark request {data!r}: {e}")
        raise HTTPException(status_code=422, detail=str(e))
    return selection_response(session)


@app.get("/selection")
def get_selection(request: Request):
    session = get_session(request)
    response = selection_response(session)
    summary = session.selection_summary()
    response["summary"] = summary.to_dict() if summary else None
    return response


@app.delete("/selection")
def reset_selection(request: Request):
    session = get_session(request)
    session.reset()
    return selection_response(session)


@app.post("/selection/process")
async def process_selection(request: Request):
    """Send the selected range to the vectorization backend."""
    session = get_session(request)
    if not session.selection.is_complete:
        raise HTTPException(status_code=409, detail="Selection is incomplete")
    result = await session.process_selection()
    response = selection_response(session)
    response["status"] = "ok" if result else "error"
    response["result"] = (
        {"chunksProcessed": result.chunks_processed, "pointsStored": result.points_stored}
        if result else None
    )
    return response


@app.get("/settings")
def get_settings(request: Request):
    """Data for the settings view, including the current selection summary."""
    return get_session(request).settings_view()


@app.patch("/settings/module")
async def update_module_settings(request: Request):
    """Update one or more module settings. Nothing is saved if any value is invalid."""
    data = await read_json(request)
    try:
        settings = settings_store.update_module_settings(data)
    except settings_store.SettingsValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return get_session(request).settings_view(settings)


@app.post("/intercept/prompt")
async def intercept_prompt(request: Request):
    """Body: {"prompt": str, "chatHistory": [...], "worldName": str}"""
    data = await read_json(request)
    prompt = await interceptor.intercept_prompt(
        data.get("prompt") or "",
        data.get("chatHistory") or [],
        data.get("worldName") or "",
    )
    return {"prompt": prompt}


@app.post("/intercept/chat")
async def intercept_chat(request: Request):
    """Body: {"chat": [...], "worldName": str, "contextSize": int, "aborted": bool}"""
    data = await read_json(request)
    aborted = bool(data.get("aborted"))
    chat = await interceptor.intercept_chat(
        data.get("chat") or [],
        data.get("worldName") or "",
        context_size=data.get("contextSize"),
        abort=lambda: aborted,
    )
    return {"chat": chat}
