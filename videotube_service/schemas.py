"""Request bodies and response shapes.

Responses are wrapped in the envelope built by ``api_response``; ORM rows go
through the ``*Out`` models so secrets such as password hashes and refresh
tokens never reach the client.
"""
from datetime import datetime
from typing import Any, List, Optional

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, EmailStr, Field


def api_response(data: Any = None, message: str = "Success", status_code: int = status.HTTP_200_OK) -> JSONResponse:
    body = {
        "status_code": status_code,
        "data": jsonable_encoder(data if data is not None else {}),
        "message": message,
        "success": status_code < 400,
    }
    return JSONResponse(status_code=status_code, content=body)


# --- requests ---

class LoginRequest(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class RefreshRequest(BaseModel):
    refresh_token: Optional[str] = Field(None, alias="refreshToken")

    model_config = ConfigDict(populate_by_name=True)


class PasswordChangeRequest(BaseModel):
    old_password: str = Field(..., alias="oldPassword")
    new_password: str = Field(..., alias="newPassword", min_length=1)

    model_config = ConfigDict(populate_by_name=True)


class AccountUpdateRequest(BaseModel):
    fullname: str = Field(..., min_length=1)
    email: EmailStr


class ContentRequest(BaseModel):
    content: Optional[str] = None


class PlaylistCreateRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = ""
    is_private: bool = Field(True, alias="isPrivate")

    model_config = ConfigDict(populate_by_name=True)


class PlaylistUpdateRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    is_private: Optional[bool] = Field(None, alias="isPrivate")

    model_config = ConfigDict(populate_by_name=True)


# --- responses ---

class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class UserOut(ORMModel):
    id: str
    username: str
    email: str
    fullname: str
    avatar: str
    cover_image: str
    created_at: datetime
    updated_at: datetime


class VideoOut(ORMModel):
    id: str
    title: str
    description: str
    video_file: str
    thumbnail: str
    duration: float
    is_published: bool
    owner_id: str
    created_at: datetime
    updated_at: datetime


class TweetOut(ORMModel):
    id: str
    content: str
    owner_id: str
    created_at: datetime
    updated_at: datetime


class CommentOut(ORMModel):
    id: str
    content: str
    video_id: str
    owner_id: str
    created_at: datetime
    updated_at: datetime


class PlaylistOut(ORMModel):
    id: str
    name: str
    description: str
    is_private: bool
    owner_id: str
    videos: List[str]
    created_at: datetime
    updated_at: datetime


def dump(model, rows):
    if isinstance(rows, list):
        return [model.model_validate(r).model_dump() for r in rows]
    return model.model_validate(rows).model_dump()
