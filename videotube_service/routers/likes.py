from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from videotube_service import projections, toggles
from videotube_service.db import get_db
from videotube_service.errors import NotFound, parse_id
from videotube_service.models import LikeTarget, User
from videotube_service.schemas import VideoOut, api_response, dump
from videotube_service.security import get_current_user

router = APIRouter(prefix="/likes", tags=["likes"])

# route segment -> like target
KINDS = {"v": LikeTarget.video, "t": LikeTarget.tweet, "c": LikeTarget.comment}


def _kind(segment: str) -> LikeTarget:
    try:
        return KINDS[segment]
    except KeyError:
        raise NotFound(f"Unknown like target '{segment}'")


@router.post("/toggle/{kind}/{target_id}")
def toggle_like(kind: str,
                target_id: str,
                current_user: User = Depends(get_current_user),
                db: Session = Depends(get_db)):
    target = _kind(kind)
    result = toggles.toggle_like(db, current_user.id, target, parse_id(target_id, f"{target.value}Id"))
    return api_response({"status": result.value}, f"like changed successfully on {target.value}")


@router.get("/videos")
def get_liked_videos(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    videos = projections.liked_videos(db, current_user.id)
    return api_response(dump(VideoOut, videos), "all videos liked by user fetched successfully")


@router.get("/count/{kind}/{target_id}")
def get_like_count(kind: str,
                   target_id: str,
                   current_user: User = Depends(get_current_user),
                   db: Session = Depends(get_db)):
    target = _kind(kind)
    count = projections.like_count(db, target, parse_id(target_id, f"{target.value}Id"), current_user.id)
    return api_response({"likes": count}, f"total likes on {target.value} fetched successfully")
