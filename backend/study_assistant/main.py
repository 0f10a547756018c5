from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

# Load environment variables
load_dotenv()

from study_assistant.api.routes import chat, document_context, library, settings
from study_assistant.api import websocket
from study_assistant.core.config import settings as app_settings
from study_assistant.core.logger_config import setup_logging
from study_assistant.core.rate_limit import limiter
from study_assistant.db.database import connect_db, disconnect_db

setup_logging(app_settings.log_level)

app = FastAPI(
    title="Study Assistant API",
    version="1.0.0",
    description="Backend API for the notes-grounded study assistant"
)

# Attach limiter to app state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=app_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(library.router, prefix="/api")
app.include_router(document_context.router, prefix="/api")
app.include_router(chat.router, prefix="/api")
app.include_router(settings.router, prefix="/api")
app.include_router(websocket.router)


@app.get("/")
async def root():
    return {
        "name": "Study Assistant API",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health")
async def health():
    return {"status": "healthy"}


@app.on_event("startup")
async def startup():
    """Connect to database on startup."""
    await connect_db()


@app.on_event("shutdown")
async def shutdown():
    """Disconnect from database on shutdown."""
    await disconnect_db()
