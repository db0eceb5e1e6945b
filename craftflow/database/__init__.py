from craftflow.database.base import Base
from craftflow.database.engine import build_engine, engine
from craftflow.database.session import SessionLocal, build_session_factory

__all__ = ["Base", "SessionLocal", "build_engine", "build_session_factory", "engine"]
