import logging

from sqlalchemy.orm import Session

from videotube_service.errors import Forbidden, NotFound
from videotube_service.models import Video

logger = logging.getLogger(__name__)


def is_owned_by(entity, actor_id: str) -> bool:
    owner_id = getattr(entity, "owner_id", None)
    return owner_id is not None and actor_id is not None and str(owner_id) == str(actor_id)


def assert_owner(entity, actor_id: str, action: str = "modify"):
    if not is_owned_by(entity, actor_id):
        kind = type(entity).__name__.lower()
        logger.warning("Forbidden %s of %s %s by %s", action, kind, getattr(entity, "id", "?"), actor_id)
        raise Forbidden(f"User is not authorized to {action} this {kind}")


def visible_video(db: Session, video_id: str, viewer_id: str) -> Video:
    """Load a video the viewer may see. Drafts exist only for their owner."""
    video = db.get(Video, video_id)
    if video is None:
        raise NotFound("video not found")
    if not video.is_published and not is_owned_by(video, viewer_id):
        logger.debug("Draft video %s hidden from %s", video_id, viewer_id)
        raise NotFound("video not found")
    return video
