#!/usr/bin/env python3
import os
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from videotube_service.config import settings
from videotube_service.db import Base, engine
from videotube_service.errors import register_exception_handlers
from videotube_service.routers import (
    comments,
    dashboard,
    likes,
    playlists,
    subscriptions,
    tweets,
    users,
    videos,
    views,
)

# -----------------------------------------------------
# Logging configuration
# -----------------------------------------------------
LOG_LEVEL = settings.log_level.upper()
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s:%(lineno)d] %(message)s",
)
logger = logging.getLogger("videotube_service")

# -----------------------------------------------------
# Database schema & media directory
# -----------------------------------------------------
Base.metadata.create_all(bind=engine)
os.makedirs(settings.upload_dir, exist_ok=True)

# -----------------------------------------------------
# App
# -----------------------------------------------------
app = FastAPI(title="VideoTube API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

API_PREFIX = "/api/v1"
for module in (users, videos, comments, likes, subscriptions, tweets, playlists, views, dashboard):
    app.include_router(module.router, prefix=API_PREFIX)

app.mount(settings.media_url_prefix, StaticFiles(directory=settings.upload_dir), name="media")


@app.get("/healthz")
def healthz():
    return {"status": "ok"}


logger.info("VideoTube API ready | db=%s uploads=%s", engine.url.render_as_string(hide_password=True),
            settings.upload_dir)

# Entry point
if __name__ == '__main__':
    import uvicorn
    uvicorn.run('videotube_service.main:app', host='0.0.0.0', port=settings.port, log_level=LOG_LEVEL.lower())
