import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from videotube_service import cascade, projections
from videotube_service.db import get_db
from videotube_service.errors import BadRequest, NotFound, parse_id
from videotube_service.guards import assert_owner
from videotube_service.models import Tweet, User
from videotube_service.schemas import ContentRequest, TweetOut, api_response, dump
from videotube_service.security import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tweets", tags=["tweets"])


def _require_tweet(db: Session, tweet_id: str) -> Tweet:
    tweet = db.get(Tweet, parse_id(tweet_id, "tweetId"))
    if tweet is None:
        raise NotFound("tweet not found")
    return tweet


def _content(data: ContentRequest) -> str:
    if not data.content or not data.content.strip():
        raise BadRequest("content is required")
    return data.content.strip()


@router.post("/create")
def create_tweet(data: ContentRequest,
                 current_user: User = Depends(get_current_user),
                 db: Session = Depends(get_db)):
    tweet = Tweet(content=_content(data), owner_id=current_user.id)
    db.add(tweet)
    db.commit()
    db.refresh(tweet)
    logger.info("Tweet created | id=%s owner=%s", tweet.id, current_user.id)
    return api_response(dump(TweetOut, tweet), "Tweet added successfully", status.HTTP_201_CREATED)


@router.patch("/{tweet_id}")
def update_tweet(tweet_id: str,
                 data: ContentRequest,
                 current_user: User = Depends(get_current_user),
                 db: Session = Depends(get_db)):
    content = _content(data)
    tweet = _require_tweet(db, tweet_id)
    assert_owner(tweet, current_user.id, "update")
    tweet.content = content
    db.commit()
    db.refresh(tweet)
    return api_response(dump(TweetOut, tweet), "Tweet updated successfully")


@router.delete("/{tweet_id}")
def delete_tweet(tweet_id: str,
                 current_user: User = Depends(get_current_user),
                 db: Session = Depends(get_db)):
    tweet = _require_tweet(db, tweet_id)
    assert_owner(tweet, current_user.id, "delete")
    deleted = dump(TweetOut, tweet)
    cascade.delete_tweet(db, tweet)
    return api_response(deleted, "Tweet deleted successfully")


@router.get("/user/{user_id}")
def get_user_tweets(user_id: str,
                    current_user: User = Depends(get_current_user),
                    db: Session = Depends(get_db)):
    tweets = projections.user_tweets(db, parse_id(user_id, "userId"))
    return api_response(dump(TweetOut, tweets), "All tweets fetched successfully")


@router.get("/{tweet_id}")
def get_tweet(tweet_id: str,
              current_user: User = Depends(get_current_user),
              db: Session = Depends(get_db)):
    return api_response(dump(TweetOut, _require_tweet(db, tweet_id)), "Tweet fetched successfully")
