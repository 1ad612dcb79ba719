import logging
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from videotube_service import cascade, projections
from videotube_service.db import get_db
from videotube_service.errors import BadRequest, NotFound, parse_id
from videotube_service.guards import assert_owner, visible_video
from videotube_service.models import Comment, User
from videotube_service.schemas import CommentOut, ContentRequest, api_response, dump
from videotube_service.security import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/comments", tags=["comments"])


def _require_content(data: ContentRequest) -> str:
    if not data.content or not data.content.strip():
        raise BadRequest("content is required")
    return data.content.strip()


def _require_comment(db: Session, comment_id: str) -> Comment:
    comment = db.get(Comment, parse_id(comment_id, "commentId"))
    if comment is None:
        raise NotFound("comment not found")
    return comment


@router.post("/{video_id}")
def add_comment(video_id: str,
                data: ContentRequest,
                current_user: User = Depends(get_current_user),
                db: Session = Depends(get_db)):
    video_id = parse_id(video_id, "videoId")
    content = _require_content(data)
    visible_video(db, video_id, current_user.id)
    comment = Comment(content=content, video_id=video_id, owner_id=current_user.id)
    db.add(comment)
    db.commit()
    db.refresh(comment)
    logger.info("Comment added | id=%s video=%s", comment.id, video_id)
    return api_response(dump(CommentOut, comment), "Comment added successfully!", status.HTTP_201_CREATED)


@router.get("/{video_id}")
def get_video_comments(video_id: str,
                       page: int = 1,
                       limit: int = 10,
                       sortBy: Optional[str] = None,
                       sortType: Optional[str] = None,
                       current_user: User = Depends(get_current_user),
                       db: Session = Depends(get_db)):
    comments = projections.video_comments(db, parse_id(video_id, "videoId"), page, limit, sortBy, sortType,
                                          viewer_id=current_user.id)
    return api_response(dump(CommentOut, comments), "Comments fetched successfully")


@router.patch("/c/{comment_id}")
def update_comment(comment_id: str,
                   data: ContentRequest,
                   current_user: User = Depends(get_current_user),
                   db: Session = Depends(get_db)):
    content = _require_content(data)
    comment = _require_comment(db, comment_id)
    assert_owner(comment, current_user.id, "update")
    comment.content = content
    db.commit()
    db.refresh(comment)
    return api_response(dump(CommentOut, comment), "Comment updated successfully!")


@router.delete("/c/{comment_id}")
def delete_comment(comment_id: str,
                   current_user: User = Depends(get_current_user),
                   db: Session = Depends(get_db)):
    comment = _require_comment(db, comment_id)
    assert_owner(comment, current_user.id, "delete")
    deleted = dump(CommentOut, comment)
    cascade.delete_comment(db, comment)
    return api_response(deleted, "Comment deleted successfully!")
