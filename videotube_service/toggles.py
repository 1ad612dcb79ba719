"""Join-record toggles: likes, subscriptions and views.

A toggle looks up the join record for an (actor, target) pair and deletes it
when present, creates it otherwise. The lookup and the write share one
transaction; the unique constraints on the join tables reject a concurrent
duplicate, which surfaces as a Conflict.
"""
import enum
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from videotube_service.errors import Conflict, Forbidden, NotFound
from videotube_service.guards import visible_video
from videotube_service.models import Comment, Like, LikeTarget, Subscription, Tweet, User, Video, View

logger = logging.getLogger(__name__)

TARGET_MODELS = {
    LikeTarget.video: Video,
    LikeTarget.tweet: Tweet,
    LikeTarget.comment: Comment,
}


class ToggleResult(str, enum.Enum):
    ADDED = "added"
    REMOVED = "removed"
    UNCHANGED = "unchanged"


def get_target(db: Session, kind: LikeTarget, target_id: str, viewer_id: Optional[str] = None):
    if kind is LikeTarget.video:
        return visible_video(db, target_id, viewer_id)
    target = db.get(TARGET_MODELS[kind], target_id)
    if target is None:
        raise NotFound(f"{kind.value} not found")
    return target


def _commit_insert(db: Session, record, what: str):
    db.add(record)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning("Concurrent duplicate %s rejected", what)
        raise Conflict(f"{what} already exists")


def toggle_like(db: Session, actor_id: str, kind: LikeTarget, target_id: str) -> ToggleResult:
    get_target(db, kind, target_id, actor_id)
    existing = (db.query(Like)
                .filter_by(liked_by=actor_id, target_kind=kind, target_id=target_id)
                .first())
    if existing:
        db.delete(existing)
        db.commit()
        logger.info("Like removed | %s=%s by=%s", kind.value, target_id, actor_id)
        return ToggleResult.REMOVED
    _commit_insert(db, Like(liked_by=actor_id, target_kind=kind, target_id=target_id), "like")
    logger.info("Like added | %s=%s by=%s", kind.value, target_id, actor_id)
    return ToggleResult.ADDED


def toggle_subscription(db: Session, actor_id: str, channel_id: str) -> ToggleResult:
    if db.get(User, channel_id) is None:
        raise NotFound("channel not found")
    if actor_id == channel_id:
        raise Forbidden("User cannot subscribe to their own channel")
    existing = (db.query(Subscription)
                .filter_by(subscriber_id=actor_id, channel_id=channel_id)
                .first())
    if existing:
        db.delete(existing)
        db.commit()
        logger.info("Subscription removed | channel=%s subscriber=%s", channel_id, actor_id)
        return ToggleResult.REMOVED
    _commit_insert(db, Subscription(subscriber_id=actor_id, channel_id=channel_id), "subscription")
    logger.info("Subscription added | channel=%s subscriber=%s", channel_id, actor_id)
    return ToggleResult.ADDED


def record_view(db: Session, viewer_id: str, video_id: str) -> ToggleResult:
    visible_video(db, video_id, viewer_id)
    if db.query(View).filter_by(video_id=video_id, viewer_id=viewer_id).first():
        logger.debug("View already recorded | video=%s viewer=%s", video_id, viewer_id)
        return ToggleResult.UNCHANGED
    _commit_insert(db, View(video_id=video_id, viewer_id=viewer_id), "view")
    logger.info("View recorded | video=%s viewer=%s", video_id, viewer_id)
    return ToggleResult.ADDED
