"""
Main FastAPI application for the EXEAI backend.
Serves the REST API and a WebSocket channel for live WhatsApp events.
"""
import json
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from auth import decode_session_token
from config import CORS_ORIGINS, LOG_LEVEL, SESSION_COOKIE_NAME, WHATSAPP_AUTO_CONNECT, log_config_summary
from database import engine
from errors import AppError, error_body
from integrations.gmail.service import GmailService
from integrations.whatsapp.session import WhatsAppSessionManager
from models import Base
from realtime import ConnectionManager
from routers import auth, calendar_events, daily_note, gmail, notes, pages, settings, tasks, user, whatsapp
from utils.datetime_utils import utc_timestamp

# Logging setup
logging.basicConfig(level=getattr(logging, LOG_LEVEL, logging.INFO))
logger = logging.getLogger(__name__)

log_config_summary(logger)

# Global instances
connection_manager = ConnectionManager()
whatsapp_manager = WhatsAppSessionManager()
gmail_service = GmailService()
whatsapp_manager.add_listener(connection_manager.send_to_all)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")

    manager = app.state.whatsapp
    if WHATSAPP_AUTO_CONNECT and manager.has_credentials():
        logger.info("Restoring WhatsApp session from stored credentials")
        manager.restore()

    yield

    # Cleanup
    await app.state.whatsapp.close()
    await app.state.gmail.close()
    logger.info("Integrations closed")


app = FastAPI(title="EXEAI API", lifespan=lifespan)
app.state.whatsapp = whatsapp_manager
app.state.realtime = connection_manager
app.state.gmail = gmail_service

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ===== Error rendering =====

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content=error_body(str(exc.detail)),
                        headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
        message = f"{field}: {first.get('msg')}" if field else first.get("msg", message)
    return JSONResponse(status_code=400, content=error_body(message))


# ===== Routes =====

for router_module in (auth, user, tasks, notes, daily_note, pages, calendar_events, settings, gmail, whatsapp):
    app.include_router(router_module.router)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "timestamp": utc_timestamp()}


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """Live channel: pushes whatsapp:status and whatsapp:message events"""
    token = websocket.query_params.get("token") or websocket.cookies.get(SESSION_COOKIE_NAME)
    try:
        session = decode_session_token(token)
    except AppError:
        await websocket.close(code=1008)
        return

    await connection_manager.connect(websocket, session.user_id)
    manager = websocket.app.state.whatsapp
    await connection_manager.send_to_client(websocket, "whatsapp:status", manager.state())

    try:
        while True:
            data = await websocket.receive_text()
            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                logger.error(f"Invalid JSON received: {data}")
                continue

            event = message.get("event") if isinstance(message, dict) else None
            if event == "status:request":
                await connection_manager.send_to_client(websocket, "whatsapp:status", manager.state())
            elif event == "ping":
                await connection_manager.send_to_client(websocket, "pong", {"timestamp": utc_timestamp()})
            else:
                logger.warning(f"Unknown WebSocket event: {event}")
    except WebSocketDisconnect:
        connection_manager.disconnect(websocket, session.user_id)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app:app", host="127.0.0.1", port=8787, reload=True)
