# db.py
from sqlalchemy import create_engine
from sqlalchemy.exc import ArgumentError
from sqlalchemy.orm import sessionmaker, declarative_base

from videotube_service.config import settings

DATABASE_URL = settings.database_url

connect_args = {}
pool_args = {}
if DATABASE_URL.startswith('sqlite'):
    from sqlalchemy.pool import StaticPool
    connect_args = {"check_same_thread": False}
    pool_args = {"poolclass": StaticPool}
else:
    pool_args = {"pool_pre_ping": True}

try:
    engine = create_engine(DATABASE_URL, connect_args=connect_args, **pool_args)
except ArgumentError as e:
    raise RuntimeError(f"Invalid DATABASE_URL: {e}")

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
