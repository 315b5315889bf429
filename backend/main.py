# backend/main.py

from datetime import datetime, timezone

import logging
import os

from fastapi import FastAPI, Depends, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from dotenv import load_dotenv

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
ENV_PATH = os.path.join(BASE_DIR, ".env")
load_dotenv(ENV_PATH)

from models import WidgetIn
from store import IdGenerationError, WidgetStore, get_store

VERSION = "0.0.1"

HOST = os.getenv("WIDGETS_HOST", "0.0.0.0")
PORT = int(os.getenv("WIDGETS_PORT", "4778"))
LOG_LEVEL = os.getenv("WIDGETS_LOG_LEVEL", "INFO").upper()
CORS_ALLOW_ORIGINS = [
    o.strip()
    for o in os.getenv("CORS_ALLOW_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",")
    if o.strip()
]

NOT_FOUND = "The requested resource could not be located."
METHOD_NOT_ALLOWED = "Method not allowed for this resource."

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("widgets")

# ----- Create app FIRST (only once)
app = FastAPI(title="Widgets API", version=VERSION)

# ----- CORS (after app creation)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ===================== Request logging =====================
@app.middleware("http")
async def log_requests(request: Request, call_next):
    response = await call_next(request)
    logger.info("path: %s method: %s status: %d", request.url.path, request.method, response.status_code)
    return response


# ===================== Error responses =====================
COLLECTION_PATH = "/widgets/"
COLLECTION_METHODS = "GET, POST"
ITEM_METHODS = "GET, PUT, DELETE"


def allowed_methods(path: str):
    if path == COLLECTION_PATH:
        return COLLECTION_METHODS
    if path.startswith(COLLECTION_PATH):
        return ITEM_METHODS
    return None


@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException):
    # every error leaves as {"error": "..."}; routing misses get the generic messages
    headers = dict(getattr(exc, "headers", None) or {})
    if exc.status_code == 404:
        message = NOT_FOUND
    elif exc.status_code == 405:
        message = METHOD_NOT_ALLOWED
        # starlette only lists the first partially matching route's methods
        allow = allowed_methods(request.url.path)
        if allow:
            headers["Allow"] = allow
    else:
        message = str(exc.detail)
    return JSONResponse({"error": message}, status_code=exc.status_code, headers=headers or None)


@app.exception_handler(Exception)
async def internal_error(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse({"error": str(exc)}, status_code=500)


async def read_widget(request: Request) -> WidgetIn:
    body = await request.body()
    try:
        return WidgetIn.model_validate_json(body)
    except ValidationError as e:
        logger.warning("unable to parse widget: %s", e)
        raise HTTPException(status_code=400, detail=_decode_error(e))


def _decode_error(e: ValidationError) -> str:
    err = e.errors()[0]
    loc = ".".join(str(p) for p in err.get("loc", ()))
    return f"{loc}: {err['msg']}" if loc else err["msg"]


def _missing(widget_id: str):
    logger.info("unable to find widget with id %s", widget_id)
    return HTTPException(status_code=404, detail=NOT_FOUND)


def _needs_id():
    return HTTPException(status_code=405, detail=METHOD_NOT_ALLOWED)


# ===================== HTTP routes =====================
@app.api_route("/", methods=["GET", "OPTIONS"])
def root():
    return {"timestamp": datetime.now(timezone.utc).isoformat(), "version": VERSION}


# ------------------- Widgets API -------------------
# /widgets/ is the collection; everything after the prefix is the id, slashes included.
# Each route lists its methods, anything else on a matching path is a 405.

@app.get(COLLECTION_PATH)
def list_widgets(store: WidgetStore = Depends(get_store)):
    widgets = store.list()
    return {"widgets": [w.model_dump() for w in widgets], "count": len(widgets)}


@app.post(COLLECTION_PATH, status_code=201)
async def create_widget(request: Request, store: WidgetStore = Depends(get_store)):
    payload = await read_widget(request)
    try:
        widget = store.create(payload.name, payload.description)
    except IdGenerationError as e:
        logger.error("unable to generate uuid: %s", e)
        raise HTTPException(status_code=500, detail=str(e))
    return {"widget": widget.model_dump()}


@app.get("/widgets/{widget_id:path}")
def get_widget(widget_id: str, store: WidgetStore = Depends(get_store)):
    widget = store.get(widget_id)
    if widget is None:
        raise _missing(widget_id)
    return {"widget": widget.model_dump()}


@app.put("/widgets/{widget_id:path}")
async def update_widget(widget_id: str, request: Request, store: WidgetStore = Depends(get_store)):
    if not widget_id:
        raise _needs_id()
    if widget_id not in store:
        raise _missing(widget_id)
    payload = await read_widget(request)
    widget = store.update(widget_id, payload.name, payload.description)
    if widget is None:
        # deleted while the body was being read
        raise _missing(widget_id)
    return {"widget": widget.model_dump()}


@app.delete("/widgets/{widget_id:path}")
def delete_widget(widget_id: str, store: WidgetStore = Depends(get_store)):
    if not widget_id:
        raise _needs_id()
    widget = store.delete(widget_id)
    if widget is None:
        raise _missing(widget_id)
    return {"widget": widget.model_dump()}


if __name__ == "__main__":
    import uvicorn

    logger.info("listening for connections at %s:%d", HOST, PORT)
    uvicorn.run(app, host=HOST, port=PORT)
