from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from videotube_service import projections, toggles
from videotube_service.db import get_db
from videotube_service.errors import parse_id
from videotube_service.models import User
from videotube_service.schemas import api_response
from videotube_service.security import get_current_user

router = APIRouter(prefix="/views", tags=["views"])


@router.post("/{video_id}")
def add_video_view(video_id: str,
                   current_user: User = Depends(get_current_user),
                   db: Session = Depends(get_db)):
    result = toggles.record_view(db, current_user.id, parse_id(video_id, "videoId"))
    if result is toggles.ToggleResult.UNCHANGED:
        return api_response({"status": result.value}, "video is already viewed")
    return api_response({"status": result.value}, "view created successfully", status.HTTP_201_CREATED)


@router.get("/{video_id}")
def get_total_views(video_id: str,
                    current_user: User = Depends(get_current_user),
                    db: Session = Depends(get_db)):
    views = projections.view_count(db, parse_id(video_id, "videoId"), current_user.id)
    return api_response({"views": views}, "total views fetched successfully!")
