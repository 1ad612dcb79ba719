"""Cascading deletes for videos, tweets and comments.

Each delete is an ordered list of cleanup steps, the parent record first.
With ``ATOMIC_CASCADES`` on (default) every step runs in one transaction and a
failure rolls all of them back. With it off each step commits on its own, so
a failure leaves the parent gone and the remaining dependents orphaned; the
``CascadeResult`` attached to the raised ``CascadeError`` says which.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from videotube_service.config import settings
from videotube_service.errors import CascadeError
from videotube_service.models import Comment, Like, LikeTarget, PlaylistVideo, Tweet, Video, View
from videotube_service.storage import BlobStore

logger = logging.getLogger(__name__)


@dataclass
class CascadeStep:
    name: str
    run: Callable[[Session], int]


@dataclass
class CascadeResult:
    entity: str
    entity_id: str
    completed: List[str] = field(default_factory=list)
    deleted: dict = field(default_factory=dict)
    failed_step: Optional[str] = None
    error: Optional[str] = None
    rolled_back: bool = False
    blob_errors: List[str] = field(default_factory=list)

    @property
    def fully_cleaned(self) -> bool:
        return self.failed_step is None

    @property
    def orphans_remain(self) -> bool:
        return (self.failed_step is not None and not self.rolled_back
                and f"delete_{self.entity}" in self.completed)


def run_cascade(db: Session, entity: str, entity_id: str, steps: List[CascadeStep],
                atomic: Optional[bool] = None) -> CascadeResult:
    if atomic is None:
        atomic = settings.atomic_cascades
    result = CascadeResult(entity=entity, entity_id=entity_id)
    step = None
    try:
        for step in steps:
            count = step.run(db)
            if not atomic:
                db.commit()
            result.completed.append(step.name)
            result.deleted[step.name] = count
            logger.debug("Cascade %s %s | %s removed %d", entity, entity_id, step.name, count)
        if atomic:
            step = None
            db.commit()
    except Exception as exc:
        db.rollback()
        result.failed_step = step.name if step is not None else "commit"
        result.error = str(exc)
        result.rolled_back = atomic
        if atomic:
            result.completed.clear()
            result.deleted.clear()
        logger.error("Cascade %s %s failed at %s (rolled_back=%s): %s",
                     entity, entity_id, result.failed_step, atomic, exc, exc_info=True)
        raise CascadeError(f"Internal error while deleting {entity}", result) from exc
    logger.info("Cascade %s %s done | %s", entity, entity_id, result.deleted)
    return result


# --- steps ---

def _delete_row(db: Session, model, entity_id: str) -> int:
    return db.query(model).filter(model.id == entity_id).delete(synchronize_session=False)


def _delete_likes(db: Session, kind: LikeTarget, target_ids: List[str]) -> int:
    if not target_ids:
        return 0
    return (db.query(Like)
            .filter(Like.target_kind == kind, Like.target_id.in_(target_ids))
            .delete(synchronize_session=False))


def _delete_views(db: Session, video_id: str) -> int:
    return db.query(View).filter(View.video_id == video_id).delete(synchronize_session=False)


def _delete_comment_likes(db: Session, video_id: str) -> int:
    comment_ids = [row.id for row in db.query(Comment.id).filter(Comment.video_id == video_id)]
    return _delete_likes(db, LikeTarget.comment, comment_ids)


def _delete_comments(db: Session, video_id: str) -> int:
    return db.query(Comment).filter(Comment.video_id == video_id).delete(synchronize_session=False)


def _pull_from_playlists(db: Session, video_id: str) -> int:
    return (db.query(PlaylistVideo)
            .filter(PlaylistVideo.video_id == video_id)
            .delete(synchronize_session=False))


def video_steps(video_id: str) -> List[CascadeStep]:
    return [
        CascadeStep("delete_video", lambda db: _delete_row(db, Video, video_id)),
        CascadeStep("delete_views", lambda db: _delete_views(db, video_id)),
        CascadeStep("delete_video_likes", lambda db: _delete_likes(db, LikeTarget.video, [video_id])),
        CascadeStep("delete_comment_likes", lambda db: _delete_comment_likes(db, video_id)),
        CascadeStep("delete_comments", lambda db: _delete_comments(db, video_id)),
        CascadeStep("pull_from_playlists", lambda db: _pull_from_playlists(db, video_id)),
    ]


def tweet_steps(tweet_id: str) -> List[CascadeStep]:
    return [
        CascadeStep("delete_tweet", lambda db: _delete_row(db, Tweet, tweet_id)),
        CascadeStep("delete_tweet_likes", lambda db: _delete_likes(db, LikeTarget.tweet, [tweet_id])),
    ]


def comment_steps(comment_id: str) -> List[CascadeStep]:
    return [
        CascadeStep("delete_comment", lambda db: _delete_row(db, Comment, comment_id)),
        CascadeStep("delete_comment_likes", lambda db: _delete_likes(db, LikeTarget.comment, [comment_id])),
    ]


# --- entry points ---

def delete_video(db: Session, video: Video, blob_store: BlobStore, atomic: Optional[bool] = None) -> CascadeResult:
    video_id, thumbnail, video_file = video.id, video.thumbnail, video.video_file
    # drop the loaded instance so bulk deletes don't leave it stale in the session
    db.expunge(video)
    result = run_cascade(db, "video", video_id, video_steps(video_id), atomic)
    # blobs go only once the records are gone
    for url, resource_type in ((thumbnail, "image"), (video_file, "video")):
        try:
            blob_store.delete(url, resource_type)
        except OSError as exc:
            logger.error("Failed to delete %s blob %s: %s", resource_type, url, exc)
            result.blob_errors.append(url)
    return result


def delete_tweet(db: Session, tweet: Tweet, atomic: Optional[bool] = None) -> CascadeResult:
    tweet_id = tweet.id
    db.expunge(tweet)
    return run_cascade(db, "tweet", tweet_id, tweet_steps(tweet_id), atomic)


def delete_comment(db: Session, comment: Comment, atomic: Optional[bool] = None) -> CascadeResult:
    comment_id = comment.id
    db.expunge(comment)
    return run_cascade(db, "comment", comment_id, comment_steps(comment_id), atomic)
