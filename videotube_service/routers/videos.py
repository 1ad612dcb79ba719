import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.orm import Session

from videotube_service import cascade, projections
from videotube_service.db import get_db
from videotube_service.errors import BadRequest, Internal, parse_id
from videotube_service.guards import assert_owner, visible_video
from videotube_service.models import User, Video
from videotube_service.schemas import VideoOut, api_response, dump
from videotube_service.security import get_current_user
from videotube_service.storage import BlobStore, get_blob_store, store_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/videos", tags=["videos"])


@router.post("/upload-video")
async def upload_video(title: str = Form(""),
                       description: str = Form(""),
                       thumbnail: Optional[UploadFile] = File(None),
                       video_file: Optional[UploadFile] = File(None, alias="videoFile"),
                       current_user: User = Depends(get_current_user),
                       db: Session = Depends(get_db),
                       store: BlobStore = Depends(get_blob_store)):
    if not title.strip():
        raise BadRequest("title is required")
    if not description.strip():
        raise BadRequest("description is required")
    if thumbnail is None or not thumbnail.filename:
        raise BadRequest("thumbnail is required")
    if video_file is None or not video_file.filename:
        raise BadRequest("videoFile is required")

    thumbnail_ref = await store_upload(store, thumbnail, "image")
    video_ref = await store_upload(store, video_file, "video")
    if thumbnail_ref is None or video_ref is None:
        raise Internal("Failed to upload media")

    video = Video(
        title=title.strip(),
        description=description.strip(),
        thumbnail=thumbnail_ref.url,
        video_file=video_ref.url,
        duration=video_ref.duration or 0.0,
        owner_id=current_user.id,
    )
    db.add(video)
    db.commit()
    db.refresh(video)
    logger.info("Video uploaded | id=%s owner=%s", video.id, current_user.id)
    return api_response(dump(VideoOut, video), "Video uploaded successfully", status.HTTP_201_CREATED)


@router.get("/v/{video_id}")
def get_video(video_id: str,
              current_user: User = Depends(get_current_user),
              db: Session = Depends(get_db)):
    video = visible_video(db, parse_id(video_id, "videoId"), current_user.id)
    return api_response(dump(VideoOut, video), "video fetched successfully")


@router.patch("/v/{video_id}")
async def update_video(video_id: str,
                       title: Optional[str] = Form(None),
                       description: Optional[str] = Form(None),
                       thumbnail: Optional[UploadFile] = File(None),
                       current_user: User = Depends(get_current_user),
                       db: Session = Depends(get_db),
                       store: BlobStore = Depends(get_blob_store)):
    video = projections.require_video(db, parse_id(video_id, "videoId"))
    assert_owner(video, current_user.id, "update")
    if title is not None and not title.strip():
        raise BadRequest("title cannot be empty")
    if description is not None and not description.strip():
        raise BadRequest("description cannot be empty")

    old_thumbnail = None
    if thumbnail is not None and thumbnail.filename:
        ref = await store_upload(store, thumbnail, "image")
        old_thumbnail = video.thumbnail
        video.thumbnail = ref.url
    if title:
        video.title = title.strip()
    if description:
        video.description = description.strip()
    db.commit()
    db.refresh(video)
    if old_thumbnail:
        store.delete(old_thumbnail, "image")
    logger.info("Video updated | id=%s", video.id)
    return api_response(dump(VideoOut, video), "Video updated successfully")


@router.delete("/v/{video_id}")
def delete_video(video_id: str,
                 current_user: User = Depends(get_current_user),
                 db: Session = Depends(get_db),
                 store: BlobStore = Depends(get_blob_store)):
    video = projections.require_video(db, parse_id(video_id, "videoId"))
    assert_owner(video, current_user.id, "delete")
    result = cascade.delete_video(db, video, store)
    return api_response({"deleted": result.deleted}, "Video deleted successfully")


@router.patch("/toggle-status/{video_id}")
def toggle_publish_status(video_id: str,
                          current_user: User = Depends(get_current_user),
                          db: Session = Depends(get_db)):
    video = projections.require_video(db, parse_id(video_id, "videoId"))
    assert_owner(video, current_user.id, "toggle")
    video.is_published = not video.is_published
    db.commit()
    db.refresh(video)
    logger.info("Video %s published=%s", video.id, video.is_published)
    return api_response(dump(VideoOut, video), "Status updated successfully")


@router.get("/get-all-videos")
def get_all_videos(userId: Optional[str] = None,
                   page: int = 1,
                   limit: int = 10,
                   query: Optional[str] = None,
                   sortBy: Optional[str] = None,
                   sortType: Optional[str] = None,
                   current_user: User = Depends(get_current_user),
                   db: Session = Depends(get_db)):
    owner_id = parse_id(userId, "userId")
    videos = projections.user_videos(db, owner_id, current_user.id, page, limit, query, sortBy, sortType)
    return api_response(dump(VideoOut, videos), "Videos fetched successfully")
