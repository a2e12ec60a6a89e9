"""
Main application initialization and configuration.
"""

import logging

from fastapi import FastAPI, Depends
from sqlalchemy.orm import Session
from sqlalchemy import text

from app.dependencies import db_dependency
from app.api.routes import auth, chat, jwt
from app.core.config import CORS_ORIGINS, LOG_LEVEL
from app.middleware.cors import ScopedCORSMiddleware

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Initialize FastAPI application
app = FastAPI(title="AIDorama API")

# Configure CORS middleware; the stream endpoint answers its own preflight
app.add_middleware(
    ScopedCORSMiddleware,
    open_paths=["/api/chat/stream"],
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router)
app.include_router(jwt.router)
app.include_router(chat.router)


@app.get("/")
def read_root():
    """Return a welcome message at the root endpoint."""
    return {"message": "Welcome to AIDorama API"}


@app.get("/api")
@app.get("/api/")
def read_api_root():
    """Return a message with available API endpoints."""
    return {
        "message": "AIDorama API - Available endpoints: /api/auth/*, /api/chat/stream, /api/chat/sessions"
    }


@app.get("/health")
@app.get("/api/health")
async def health_check():
    """Health check endpoint to verify the API is running."""
    return {"status": "healthy"}


@app.get("/api/db-test")
def db_test(db: Session = Depends(db_dependency)):
    """Test the database connection."""
    try:
        db.execute(text("SELECT 1"))
        return {"status": "Database connection successful!"}
    except Exception as e:
        return {"status": "Database connection failed", "error": str(e)}
