import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from pydantic import EmailStr, TypeAdapter, ValidationError
from sqlalchemy import or_
from sqlalchemy.orm import Session

from videotube_service import projections
from videotube_service.db import get_db
from videotube_service.errors import BadRequest, Conflict, NotFound, Unauthorized
from videotube_service.models import User
from videotube_service.schemas import (
    AccountUpdateRequest,
    LoginRequest,
    PasswordChangeRequest,
    RefreshRequest,
    UserOut,
    api_response,
    dump,
)
from videotube_service.security import (
    ACCESS_COOKIE,
    REFRESH_COOKIE,
    get_current_user,
    hash_password,
    issue_tokens,
    user_from_refresh_token,
    verify_password,
)
from videotube_service.storage import BlobStore, get_blob_store, store_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])

EMAIL_ADAPTER = TypeAdapter(EmailStr)
COOKIE_OPTIONS = {"httponly": True, "secure": True}


def _set_auth_cookies(response, access_token: str, refresh_token: str):
    response.set_cookie(ACCESS_COOKIE, access_token, **COOKIE_OPTIONS)
    response.set_cookie(REFRESH_COOKIE, refresh_token, **COOKIE_OPTIONS)
    return response


@router.post("/register")
async def register(fullname: str = Form(""),
                   email: str = Form(""),
                   username: str = Form(""),
                   password: str = Form(""),
                   avatar: Optional[UploadFile] = File(None),
                   cover_image: Optional[UploadFile] = File(None, alias="coverImage"),
                   db: Session = Depends(get_db),
                   store: BlobStore = Depends(get_blob_store)):
    if any(not field or not field.strip() for field in (fullname, email, username, password)):
        raise BadRequest("All fields are required")
    try:
        email = EMAIL_ADAPTER.validate_python(email.strip())
    except ValidationError:
        raise BadRequest("Enter valid Email Id")

    username = username.strip().lower()
    if db.query(User).filter(or_(User.username == username, User.email == email)).first():
        logger.warning("Duplicate registration attempt | username=%s email=%s", username, email)
        raise Conflict("User with email or username already exists")
    if avatar is None or not avatar.filename:
        raise BadRequest("Avatar file is required")

    avatar_ref = await store_upload(store, avatar, "image")
    cover_ref = await store_upload(store, cover_image, "image")

    user = User(
        fullname=fullname.strip(),
        email=email.strip(),
        username=username,
        password_hash=hash_password(password),
        avatar=avatar_ref.url,
        cover_image=cover_ref.url if cover_ref else "",
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("User registered | id=%s username=%s", user.id, user.username)
    return api_response(dump(UserOut, user), "User registered successfully!", status.HTTP_201_CREATED)


@router.post("/login")
def login(data: LoginRequest, db: Session = Depends(get_db)):
    if not data.username and not data.email:
        raise BadRequest("username or email is required")
    filters = []
    if data.username:
        filters.append(User.username == data.username.strip().lower())
    if data.email:
        filters.append(User.email == data.email.strip())
    user = db.query(User).filter(or_(*filters)).first()
    if not user:
        raise NotFound("User does not exist")
    if not data.password:
        raise BadRequest("password is required")
    if not verify_password(data.password, user.password_hash):
        logger.warning("Failed login for %s", user.username)
        raise Unauthorized("Password incorrect")

    access_token, refresh_token = issue_tokens(db, user)
    logger.info("User logged in | id=%s", user.id)
    response = api_response(
        {"user": dump(UserOut, user), "access_token": access_token, "refresh_token": refresh_token},
        "User logged in successfully",
    )
    return _set_auth_cookies(response, access_token, refresh_token)


@router.post("/logout")
def logout(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    current_user.refresh_token = None
    db.commit()
    logger.info("User logged out | id=%s", current_user.id)
    response = api_response({}, "User logged out successfully")
    response.delete_cookie(ACCESS_COOKIE)
    response.delete_cookie(REFRESH_COOKIE)
    return response


@router.post("/refresh-token")
def refresh_access_token(request: Request, data: Optional[RefreshRequest] = None, db: Session = Depends(get_db)):
    incoming = request.cookies.get(REFRESH_COOKIE) or (data.refresh_token if data else None)
    user = user_from_refresh_token(db, incoming)
    access_token, refresh_token = issue_tokens(db, user)
    response = api_response({"access_token": access_token, "refresh_token": refresh_token},
                            "Access token refreshed")
    return _set_auth_cookies(response, access_token, refresh_token)


@router.patch("/change-password")
def change_password(data: PasswordChangeRequest,
                    current_user: User = Depends(get_current_user),
                    db: Session = Depends(get_db)):
    if not verify_password(data.old_password, current_user.password_hash):
        raise BadRequest("Invalid old password")
    current_user.password_hash = hash_password(data.new_password)
    db.commit()
    logger.info("Password changed | id=%s", current_user.id)
    return api_response({}, "Password changed successfully")


@router.get("/current-user")
def current_user_profile(current_user: User = Depends(get_current_user)):
    return api_response(dump(UserOut, current_user), "current user fetched successfully")


@router.patch("/update-account")
def update_account(data: AccountUpdateRequest,
                   current_user: User = Depends(get_current_user),
                   db: Session = Depends(get_db)):
    taken = db.query(User).filter(User.email == data.email, User.id != current_user.id).first()
    if taken:
        raise Conflict("Email already in use")
    current_user.fullname = data.fullname.strip()
    current_user.email = data.email
    db.commit()
    db.refresh(current_user)
    return api_response(dump(UserOut, current_user), "Account details updated successfully")


async def _replace_image(field: str, upload: Optional[UploadFile], current_user: User,
                         db: Session, store: BlobStore):
    if upload is None or not upload.filename:
        raise BadRequest(f"{field} file is missing")
    ref = await store_upload(store, upload, "image")
    old_url = getattr(current_user, field)
    setattr(current_user, field, ref.url)
    db.commit()
    db.refresh(current_user)
    store.delete(old_url, "image")
    logger.info("User %s replaced %s", current_user.id, field)
    return current_user


@router.patch("/update-avatar")
async def update_avatar(avatar: Optional[UploadFile] = File(None),
                        current_user: User = Depends(get_current_user),
                        db: Session = Depends(get_db),
                        store: BlobStore = Depends(get_blob_store)):
    user = await _replace_image("avatar", avatar, current_user, db, store)
    return api_response(dump(UserOut, user), "Avatar changed successfully")


@router.patch("/update-cover-image")
async def update_cover_image(cover_image: Optional[UploadFile] = File(None, alias="coverImage"),
                             current_user: User = Depends(get_current_user),
                             db: Session = Depends(get_db),
                             store: BlobStore = Depends(get_blob_store)):
    user = await _replace_image("cover_image", cover_image, current_user, db, store)
    return api_response(dump(UserOut, user), "Cover image changed successfully")


@router.get("/c/{username}")
def channel_profile(username: str,
                    current_user: User = Depends(get_current_user),
                    db: Session = Depends(get_db)):
    profile = projections.channel_profile(db, username, current_user.id)
    return api_response(profile, "User channel fetched successfully")


@router.get("/history")
def watch_history(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    history = projections.watch_history(db, current_user.id)
    return api_response(history, "Watch history fetched successfully")
