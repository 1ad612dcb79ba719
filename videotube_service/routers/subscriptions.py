from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from videotube_service import projections, toggles
from videotube_service.db import get_db
from videotube_service.errors import parse_id
from videotube_service.models import User
from videotube_service.schemas import api_response
from videotube_service.security import get_current_user

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


@router.post("/c/{channel_id}")
def toggle_subscription(channel_id: str,
                        current_user: User = Depends(get_current_user),
                        db: Session = Depends(get_db)):
    result = toggles.toggle_subscription(db, current_user.id, parse_id(channel_id, "channelId"))
    return api_response({"status": result.value}, "subscription changed successfully on channel")


@router.get("/c/{channel_id}")
def get_channel_subscribers(channel_id: str,
                            current_user: User = Depends(get_current_user),
                            db: Session = Depends(get_db)):
    subscribers = projections.channel_subscribers(db, parse_id(channel_id, "channelId"))
    return api_response({"subscribers": subscribers}, "Subscriber list of a channel fetched successfully")


@router.get("/u/{subscriber_id}")
def get_subscribed_channels(subscriber_id: str,
                            current_user: User = Depends(get_current_user),
                            db: Session = Depends(get_db)):
    channels = projections.subscribed_channels(db, parse_id(subscriber_id, "subscriberId"))
    return api_response({"subscribed_to": channels}, "channel list of a subscriber fetched successfully")
