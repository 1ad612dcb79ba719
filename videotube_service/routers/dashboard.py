from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from videotube_service import projections
from videotube_service.db import get_db
from videotube_service.errors import parse_id
from videotube_service.models import User
from videotube_service.schemas import api_response
from videotube_service.security import get_current_user

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats/{channel_id}")
def get_channel_stats(channel_id: str,
                      current_user: User = Depends(get_current_user),
                      db: Session = Depends(get_db)):
    stats = projections.channel_stats(db, parse_id(channel_id, "channelId"))
    return api_response(stats, "channel details fetched successfully")


@router.get("/video/{channel_id}")
def get_channel_videos(channel_id: str,
                       current_user: User = Depends(get_current_user),
                       db: Session = Depends(get_db)):
    videos = projections.channel_videos(db, parse_id(channel_id, "channelId"))
    return api_response({"videos": videos}, "channel videos fetched successfully")
