"""Read models computed at query time.

Every projection selects a root record by id, raises NotFound when it is
missing, and otherwise returns its related rows (possibly none) joined and
counted on the fly. Nothing here writes.
"""
import logging
import re
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from videotube_service.config import settings
from videotube_service.errors import BadRequest, NotFound
from videotube_service.guards import visible_video
from videotube_service.models import (
    Comment,
    Like,
    LikeTarget,
    Playlist,
    Subscription,
    Tweet,
    User,
    Video,
    View,
)
from videotube_service.toggles import get_target

logger = logging.getLogger(__name__)

VIDEO_SORT_FIELDS = {"created_at", "updated_at", "title", "duration", "views"}
COMMENT_SORT_FIELDS = {"created_at", "updated_at", "content"}

_camel = re.compile(r"(?<!^)(?=[A-Z])")


def _snake(name: str) -> str:
    return _camel.sub("_", name).lower()


def paginate(items: list, page: int = 1, limit: int = 10, sort_by: Optional[str] = None,
             sort_type: Optional[str] = None, sortable=None, key=None) -> list:
    """Sort ``items`` in process, then return the 1-based ``page`` of size ``limit``.

    ``sort_by`` may be snake_case or camelCase and must be in ``sortable`` when
    given. ``key`` overrides attribute lookup for derived fields.
    """
    if page < 1:
        raise BadRequest("page must be >= 1")
    if limit < 1:
        raise BadRequest("limit must be >= 1")
    limit = min(limit, settings.max_page_limit)

    field_name = _snake(sort_by) if sort_by else "created_at"
    if sortable is not None and field_name not in sortable:
        raise BadRequest(f"Cannot sort by {sort_by}")
    if sort_type not in (None, "", "asc", "desc"):
        raise BadRequest("sortType must be 'asc' or 'desc'")

    def sort_key(item):
        value = key(item, field_name) if key else getattr(item, field_name, None)
        return (value is None, value)

    ordered = sorted(items, key=sort_key, reverse=(sort_type == "desc"))
    start = (page - 1) * limit
    return ordered[start:start + limit]


def require_user(db: Session, user_id: str) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFound("user not found")
    return user


def require_video(db: Session, video_id: str) -> Video:
    video = db.get(Video, video_id)
    if video is None:
        raise NotFound("video not found")
    return video


# --- counts ---

def like_count(db: Session, kind: LikeTarget, target_id: str, viewer_id: Optional[str] = None) -> int:
    get_target(db, kind, target_id, viewer_id)
    return (db.query(func.count(Like.id))
            .filter(Like.target_kind == kind, Like.target_id == target_id)
            .scalar())


def view_count(db: Session, video_id: str, viewer_id: Optional[str] = None) -> int:
    visible_video(db, video_id, viewer_id)
    return db.query(func.count(View.id)).filter(View.video_id == video_id).scalar()


def _views_per_video(db: Session, video_ids: List[str]) -> dict:
    if not video_ids:
        return {}
    rows = (db.query(View.video_id, func.count(View.id))
            .filter(View.video_id.in_(video_ids))
            .group_by(View.video_id))
    return dict(rows)


def _likes_per_video(db: Session, video_ids: List[str]) -> dict:
    if not video_ids:
        return {}
    rows = (db.query(Like.target_id, func.count(Like.id))
            .filter(Like.target_kind == LikeTarget.video, Like.target_id.in_(video_ids))
            .group_by(Like.target_id))
    return dict(rows)


# --- channel ---

def channel_stats(db: Session, channel_id: str) -> dict:
    require_user(db, channel_id)
    video_ids = [row.id for row in db.query(Video.id).filter(Video.owner_id == channel_id)]
    views = _views_per_video(db, video_ids)
    likes = _likes_per_video(db, video_ids)
    subscribers = (db.query(func.count(Subscription.id))
                   .filter(Subscription.channel_id == channel_id)
                   .scalar())
    return {
        "totalVideos": len(video_ids),
        "totalViews": sum(views.get(v, 0) for v in video_ids),
        "totalLikes": sum(likes.get(v, 0) for v in video_ids),
        "totalSubscribers": subscribers,
    }


def channel_videos(db: Session, channel_id: str) -> List[str]:
    require_user(db, channel_id)
    rows = db.query(Video.id).filter(Video.owner_id == channel_id).order_by(Video.created_at)
    return [row.id for row in rows]


def channel_profile(db: Session, username: str, viewer_id: Optional[str]) -> dict:
    if not username or not username.strip():
        raise BadRequest("username is missing")
    user = db.query(User).filter(User.username == username.strip().lower()).first()
    if user is None:
        raise NotFound("Channel does not exist")
    subscriber_ids = [row.subscriber_id for row in
                      db.query(Subscription.subscriber_id).filter(Subscription.channel_id == user.id)]
    subscribed_to = (db.query(func.count(Subscription.id))
                     .filter(Subscription.subscriber_id == user.id)
                     .scalar())
    return {
        "id": user.id,
        "username": user.username,
        "fullname": user.fullname,
        "email": user.email,
        "avatar": user.avatar,
        "cover_image": user.cover_image,
        "subscribers_count": len(subscriber_ids),
        "channels_subscribed_to_count": subscribed_to,
        "is_subscribed": viewer_id in subscriber_ids,
    }


def channel_subscribers(db: Session, channel_id: str) -> List[str]:
    require_user(db, channel_id)
    rows = (db.query(Subscription.subscriber_id)
            .filter(Subscription.channel_id == channel_id)
            .order_by(Subscription.id))
    return [row.subscriber_id for row in rows]


def subscribed_channels(db: Session, subscriber_id: str) -> List[str]:
    require_user(db, subscriber_id)
    rows = (db.query(Subscription.channel_id)
            .filter(Subscription.subscriber_id == subscriber_id)
            .order_by(Subscription.id))
    return [row.channel_id for row in rows]


# --- user activity ---

def watch_history(db: Session, user_id: str) -> List[str]:
    require_user(db, user_id)
    rows = db.query(View.video_id).filter(View.viewer_id == user_id).order_by(View.id)
    return [row.video_id for row in rows]


def liked_videos(db: Session, user_id: str) -> List[Video]:
    require_user(db, user_id)
    return (db.query(Video)
            .join(Like, Like.target_id == Video.id)
            .filter(Like.liked_by == user_id, Like.target_kind == LikeTarget.video)
            .filter(or_(Video.is_published.is_(True), Video.owner_id == user_id))
            .order_by(Like.id)
            .all())


def user_tweets(db: Session, user_id: str) -> List[Tweet]:
    require_user(db, user_id)
    return db.query(Tweet).filter(Tweet.owner_id == user_id).order_by(Tweet.created_at).all()


def user_playlists(db: Session, owner_id: str, viewer_id: Optional[str]) -> List[Playlist]:
    require_user(db, owner_id)
    q = db.query(Playlist).filter(Playlist.owner_id == owner_id)
    if viewer_id != owner_id:
        q = q.filter(Playlist.is_private.is_(False))
    return q.order_by(Playlist.created_at).all()


# --- paginated listings ---

def user_videos(db: Session, owner_id: str, viewer_id: Optional[str], page: int = 1, limit: int = 10,
                query: Optional[str] = None, sort_by: Optional[str] = None,
                sort_type: Optional[str] = None) -> List[Video]:
    require_user(db, owner_id)
    q = db.query(Video).filter(Video.owner_id == owner_id)
    if viewer_id != owner_id:
        q = q.filter(Video.is_published.is_(True))
    if query and query.strip():
        pattern = f"%{query.strip()}%"
        q = q.filter(or_(Video.title.ilike(pattern), Video.description.ilike(pattern)))
    videos = q.all()

    key = None
    if sort_by and _snake(sort_by) == "views":
        counts = _views_per_video(db, [v.id for v in videos])

        def key(video, field_name):
            return counts.get(video.id, 0)

    logger.debug("Listing %d videos of %s (page=%s limit=%s)", len(videos), owner_id, page, limit)
    return paginate(videos, page, limit, sort_by, sort_type, sortable=VIDEO_SORT_FIELDS, key=key)


def video_comments(db: Session, video_id: str, page: int = 1, limit: int = 10,
                   sort_by: Optional[str] = None, sort_type: Optional[str] = None,
                   viewer_id: Optional[str] = None) -> List[Comment]:
    visible_video(db, video_id, viewer_id)
    comments = db.query(Comment).filter(Comment.video_id == video_id).order_by(Comment.created_at).all()
    return paginate(comments, page, limit, sort_by, sort_type, sortable=COMMENT_SORT_FIELDS)
