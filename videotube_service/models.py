import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.mysql import CHAR
from sqlalchemy.orm import relationship

from videotube_service.db import Base


def generate_uuid():
    return str(uuid.uuid4())


class LikeTarget(str, enum.Enum):
    video = 'video'
    tweet = 'tweet'
    comment = 'comment'


class User(Base):
    __tablename__ = 'users'

    id = Column(CHAR(36), primary_key=True, default=generate_uuid)
    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False)
    fullname = Column(String(100), nullable=False)
    password_hash = Column(String(255), nullable=False)
    avatar = Column(String(512), nullable=False)
    cover_image = Column(String(512), nullable=False, default='')
    refresh_token = Column(String(1024), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Video(Base):
    __tablename__ = 'videos'

    id = Column(CHAR(36), primary_key=True, default=generate_uuid)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    video_file = Column(String(512), nullable=False)
    thumbnail = Column(String(512), nullable=False)
    duration = Column(Float, nullable=False, default=0.0)
    is_published = Column(Boolean, nullable=False, default=True)
    owner_id = Column(CHAR(36), ForeignKey('users.id'), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Tweet(Base):
    __tablename__ = 'tweets'

    id = Column(CHAR(36), primary_key=True, default=generate_uuid)
    content = Column(Text, nullable=False)
    owner_id = Column(CHAR(36), ForeignKey('users.id'), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Comment(Base):
    __tablename__ = 'comments'

    id = Column(CHAR(36), primary_key=True, default=generate_uuid)
    content = Column(Text, nullable=False)
    # video ids are plain references; the cascade engine cleans them up
    video_id = Column(CHAR(36), nullable=False, index=True)
    owner_id = Column(CHAR(36), ForeignKey('users.id'), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Like(Base):
    __tablename__ = 'likes'
    __table_args__ = (
        UniqueConstraint('liked_by', 'target_kind', 'target_id', name='uk_like_actor_target'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    liked_by = Column(CHAR(36), ForeignKey('users.id'), nullable=False, index=True)
    target_kind = Column(Enum(LikeTarget), nullable=False)
    target_id = Column(CHAR(36), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<Like {self.target_kind.value}={self.target_id} liked_by={self.liked_by}>'


class Subscription(Base):
    __tablename__ = 'subscriptions'
    __table_args__ = (
        UniqueConstraint('subscriber_id', 'channel_id', name='uk_subscription_pair'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    subscriber_id = Column(CHAR(36), ForeignKey('users.id'), nullable=False, index=True)
    channel_id = Column(CHAR(36), ForeignKey('users.id'), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class View(Base):
    __tablename__ = 'views'
    __table_args__ = (
        UniqueConstraint('video_id', 'viewer_id', name='uk_view_pair'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    video_id = Column(CHAR(36), nullable=False, index=True)
    viewer_id = Column(CHAR(36), ForeignKey('users.id'), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Playlist(Base):
    __tablename__ = 'playlists'

    id = Column(CHAR(36), primary_key=True, default=generate_uuid)
    name = Column(String(100), nullable=False)
    description = Column(String(255), nullable=False, default='')
    is_private = Column(Boolean, nullable=False, default=True)
    owner_id = Column(CHAR(36), ForeignKey('users.id'), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    entries = relationship(
        'PlaylistVideo',
        back_populates='playlist',
        order_by='PlaylistVideo.position',
        cascade='all, delete-orphan',
    )

    @property
    def videos(self):
        return [entry.video_id for entry in self.entries]


class PlaylistVideo(Base):
    __tablename__ = 'playlist_videos'

    playlist_id = Column(CHAR(36), ForeignKey('playlists.id'), primary_key=True)
    video_id = Column(CHAR(36), primary_key=True)
    position = Column(Integer, nullable=False)
    added_at = Column(DateTime, default=datetime.utcnow)
    playlist = relationship('Playlist', back_populates='entries')
