"""
Persistence layer: engine/session wiring plus the ORM models and the
request/response schemas built on top of them.
"""

from app.db.database import Base, SessionLocal, engine, get_db, init_db
from app.db import models, schemas

__all__ = ["Base", "SessionLocal", "engine", "get_db", "init_db", "models", "schemas"]
