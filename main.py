from __future__ import annotations

# -------- IMPORTS --------
import os
import logging
from typing import Optional, List, Type

# FastAPI core
from fastapi import FastAPI, Request, Depends
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

import pydantic
from pydantic import BaseModel

# MongoDB driver
from motor.motor_asyncio import AsyncIOMotorClient

# Env loader
from dotenv import load_dotenv

from errors import ServiceError, ValidationError, StorageError
from models.access import AccessIn, AccessRecordOut
from models.user import UserIn, StatusUpdateIn
from store import AccessStore, format_timestamp

load_dotenv()

# ---------- ENV ----------
PORT = int(os.getenv("PORT", "3001"))
MONGO_URI = os.getenv("MONGO_URI")
MONGO_DB_NAME = os.getenv("MONGO_DB_NAME") or "access_control"
PUBLIC_DIR = os.getenv("PUBLIC_DIR") or os.path.join(os.path.dirname(os.path.abspath(__file__)), "public")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# ---------- Logging ----------
logging.basicConfig(level=getattr(logging, LOG_LEVEL.upper(), logging.INFO), format="%(asctime)s [%(levelname)s] %(message)s")
logger = logging.getLogger("access_api")

# ---------- App ----------
app = FastAPI(title="Access & User API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------- DB ----------
mongo_client: Optional[AsyncIOMotorClient] = None
store: Optional[AccessStore] = None

async def get_store() -> AccessStore:
    if store is None:
        raise StorageError("db-not-configured")
    return store

# ---------- Errors ----------
@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

# ---------- Helpers ----------
async def parse_body(request: Request, schema: Type[BaseModel], message: str) -> BaseModel:
    """Validate a raw JSON body against schema, raising ValidationError(message) on any failure."""
    try:
        body = await request.json()
    except ValueError:
        body = None
    if not isinstance(body, dict):
        logger.warning("Validation failed for %s: body is not a JSON object", request.url.path)
        raise ValidationError(message)
    try:
        return schema(**body)
    except pydantic.ValidationError:
        logger.warning("Validation failed for %s: %s", request.url.path, body)
        raise ValidationError(message)

def serialize_record(doc: dict) -> dict:
    timestamp = format_timestamp(doc.get("timestamp"))
    if timestamp is None:
        logger.warning("Invalid or missing timestamp for record: %s", doc)
    return {
        "id": str(doc.get("_id")),
        "studentId": doc.get("studentId"),
        "role": doc.get("role"),
        "timestamp": timestamp,
    }

# ---------- Startup / Shutdown ----------
@app.on_event("startup")
async def startup():
    global mongo_client, store
    if not MONGO_URI:
        raise RuntimeError("MONGO_URI is not set; cannot connect to the document store")
    mongo_client = AsyncIOMotorClient(MONGO_URI)
    store = AccessStore(mongo_client[MONGO_DB_NAME])
    try:
        await store.ensure_indexes()
        logger.info("MongoDB connected and indexes ensured")
    except Exception as e:
        logger.exception("Index creation failed: %s", e)

@app.on_event("shutdown")
async def shutdown():
    global mongo_client
    if mongo_client:
        mongo_client.close()

# ---------- Health -----------
@app.get("/health")
async def health(store: AccessStore = Depends(get_store)):
    return {"status": "ok", "db": await store.ping()}

# ---------- Record access ----------
@app.post("/api/access", status_code=201)
async def record_access(request: Request, store: AccessStore = Depends(get_store)):
    payload = await parse_body(request, AccessIn, "Valid Student ID and role are required")
    timestamp = await store.record_access(payload.studentId, payload.role)
    return {"message": "Access recorded", "timestamp": format_timestamp(timestamp)}

# ---------- Access history ----------
@app.get("/api/access", response_model=List[AccessRecordOut])
async def list_access(store: AccessStore = Depends(get_store)):
    docs = await store.list_access()
    if not docs:
        logger.info("No access records found")
        return JSONResponse(status_code=404, content={"message": "No records found"})
    records = [serialize_record(d) for d in docs]
    logger.debug("Fetched records: %s", records)
    return records

# ---------- Users ----------
@app.post("/api/updateStatus")
async def update_status(request: Request, store: AccessStore = Depends(get_store)):
    payload = await parse_body(request, StatusUpdateIn, "Valid Student ID and status are required")
    count = await store.update_user_status(payload.studentId, payload.status)
    logger.info("Updated %d user record(s) for %s to %s", count, payload.studentId, payload.status)
    return {"message": f"User ID {payload.studentId} updated to {payload.status}"}

@app.post("/api/addUser", status_code=201)
async def add_user(request: Request, store: AccessStore = Depends(get_store)):
    payload = await parse_body(request, UserIn, "Valid Student ID and role are required")
    await store.add_user(payload.studentId, payload.role)
    return {"message": "User added successfully"}

# ---------- Static files ----------
def mount_public(app: FastAPI, directory: str) -> bool:
    """Serve directory at / (index.html for the root). Call after the API routes so they win."""
    if not os.path.isdir(directory):
        return False
    app.mount("/", StaticFiles(directory=directory, html=True), name="static")
    logger.info("Serving static files from %s", directory)
    return True

mount_public(app, PUBLIC_DIR)

# ---------- run ----------
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=PORT)
