import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from videotube_service import projections
from videotube_service.db import get_db
from videotube_service.errors import BadRequest, Conflict, Forbidden, NotFound, parse_id
from videotube_service.guards import assert_owner, is_owned_by, visible_video
from videotube_service.models import Playlist, PlaylistVideo, User
from videotube_service.schemas import (
    PlaylistCreateRequest,
    PlaylistOut,
    PlaylistUpdateRequest,
    api_response,
    dump,
)
from videotube_service.security import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/playlists", tags=["playlists"])


def _require_playlist(db: Session, playlist_id: str) -> Playlist:
    playlist = db.get(Playlist, parse_id(playlist_id, "playlistId"))
    if playlist is None:
        raise NotFound("playlist not found")
    return playlist


@router.post("")
def create_playlist(data: PlaylistCreateRequest,
                    current_user: User = Depends(get_current_user),
                    db: Session = Depends(get_db)):
    if not data.name or not data.name.strip():
        raise BadRequest("name is required")
    playlist = Playlist(
        name=data.name.strip(),
        description=(data.description or "").strip(),
        is_private=data.is_private,
        owner_id=current_user.id,
    )
    db.add(playlist)
    db.commit()
    db.refresh(playlist)
    logger.info("Playlist created | id=%s owner=%s", playlist.id, current_user.id)
    return api_response(dump(PlaylistOut, playlist), "Playlist created successfully", status.HTTP_201_CREATED)


@router.get("/user/{user_id}")
def get_user_playlists(user_id: str,
                       current_user: User = Depends(get_current_user),
                       db: Session = Depends(get_db)):
    playlists = projections.user_playlists(db, parse_id(user_id, "userId"), current_user.id)
    return api_response(dump(PlaylistOut, playlists), "User playlists fetched successfully")


@router.get("/{playlist_id}")
def get_playlist(playlist_id: str,
                 current_user: User = Depends(get_current_user),
                 db: Session = Depends(get_db)):
    playlist = _require_playlist(db, playlist_id)
    if playlist.is_private and not is_owned_by(playlist, current_user.id):
        raise Forbidden("This playlist is private")
    return api_response(dump(PlaylistOut, playlist), "playlist fetched successfully")


@router.patch("/{playlist_id}")
def update_playlist(playlist_id: str,
                    data: PlaylistUpdateRequest,
                    current_user: User = Depends(get_current_user),
                    db: Session = Depends(get_db)):
    if data.name is not None and not data.name.strip():
        raise BadRequest("name cannot be empty")
    playlist = _require_playlist(db, playlist_id)
    assert_owner(playlist, current_user.id, "update")
    if data.name:
        playlist.name = data.name.strip()
    if data.description is not None:
        playlist.description = data.description.strip()
    if data.is_private is not None:
        playlist.is_private = data.is_private
    db.commit()
    db.refresh(playlist)
    return api_response(dump(PlaylistOut, playlist), "playlist updated successfully")


@router.delete("/{playlist_id}")
def delete_playlist(playlist_id: str,
                    current_user: User = Depends(get_current_user),
                    db: Session = Depends(get_db)):
    playlist = _require_playlist(db, playlist_id)
    assert_owner(playlist, current_user.id, "delete")
    deleted = dump(PlaylistOut, playlist)
    db.delete(playlist)
    db.commit()
    logger.info("Playlist deleted | id=%s", deleted["id"])
    return api_response(deleted, "playlist deleted successfully")


@router.patch("/add/{video_id}/{playlist_id}")
def add_video_to_playlist(video_id: str,
                          playlist_id: str,
                          current_user: User = Depends(get_current_user),
                          db: Session = Depends(get_db)):
    video_id = parse_id(video_id, "videoId")
    playlist = _require_playlist(db, playlist_id)
    assert_owner(playlist, current_user.id, "add videos to")
    visible_video(db, video_id, current_user.id)
    if video_id in playlist.videos:
        raise Conflict("Video is already present in the playlist")
    position = max((e.position for e in playlist.entries), default=-1) + 1
    playlist.entries.append(PlaylistVideo(video_id=video_id, position=position))
    db.commit()
    db.refresh(playlist)
    logger.info("Video %s added to playlist %s", video_id, playlist.id)
    return api_response(playlist.videos, "video added successfully")


@router.patch("/remove/{video_id}/{playlist_id}")
def remove_video_from_playlist(video_id: str,
                               playlist_id: str,
                               current_user: User = Depends(get_current_user),
                               db: Session = Depends(get_db)):
    video_id = parse_id(video_id, "videoId")
    playlist = _require_playlist(db, playlist_id)
    assert_owner(playlist, current_user.id, "remove videos from")
    entry = next((e for e in playlist.entries if e.video_id == video_id), None)
    if entry is None:
        raise NotFound("Video is not present in the playlist")
    playlist.entries.remove(entry)
    db.commit()
    db.refresh(playlist)
    logger.info("Video %s removed from playlist %s", video_id, playlist.id)
    return api_response(playlist.videos, "video removed successfully")
