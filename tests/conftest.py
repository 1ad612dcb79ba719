import os
import sys
import tempfile

# Use in-memory SQLite and a throwaway upload dir for tests
os.environ['DATABASE_URL'] = 'sqlite:///:memory:'
os.environ['UPLOAD_DIR'] = tempfile.mkdtemp(prefix='videotube-test-')
os.environ['ACCESS_TOKEN_SECRET'] = 'test-access-secret'
os.environ['REFRESH_TOKEN_SECRET'] = 'test-refresh-secret'
os.environ['LOG_LEVEL'] = 'WARNING'

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import pytest
from fastapi.testclient import TestClient

from videotube_service.db import Base, SessionLocal, engine
from videotube_service.main import app
from videotube_service.models import Comment, Playlist, Tweet, User, Video
from videotube_service.security import create_access_token, hash_password
from videotube_service.storage import BlobRef, BlobStore, get_blob_store

PASSWORD = 'password'
PASSWORD_HASH = hash_password(PASSWORD)


class FakeBlobStore(BlobStore):
    """Keeps blob URLs in memory instead of touching the upload dir."""

    def __init__(self):
        self.uploaded = []
        self.deleted = []

    def upload(self, local_path, resource_type='image'):
        ext = os.path.splitext(local_path)[1]
        os.remove(local_path)
        url = f'/media/{resource_type}s/blob{len(self.uploaded)}{ext}'
        self.uploaded.append(url)
        duration = 42.0 if resource_type == 'video' else None
        return BlobRef(url=url, public_id=f'blob{len(self.uploaded)}', duration=duration)

    def delete(self, url, resource_type='image'):
        self.deleted.append(url)
        return True


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def blob_store():
    store = FakeBlobStore()
    app.dependency_overrides[get_blob_store] = lambda: store
    yield store
    app.dependency_overrides.pop(get_blob_store, None)


@pytest.fixture
def client(blob_store):
    return TestClient(app)


@pytest.fixture
def make_user(db):
    def _make(username='alice', **kw):
        user = User(
            username=username,
            email=kw.pop('email', f'{username}@example.com'),
            fullname=kw.pop('fullname', username.title()),
            password_hash=PASSWORD_HASH,
            avatar=kw.pop('avatar', f'/media/images/{username}.png'),
            **kw,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def make_video(db):
    def _make(owner, title='A video', **kw):
        video = Video(
            title=title,
            description=kw.pop('description', 'about it'),
            video_file=kw.pop('video_file', '/media/videos/v.mp4'),
            thumbnail=kw.pop('thumbnail', '/media/images/t.png'),
            owner_id=owner.id,
            **kw,
        )
        db.add(video)
        db.commit()
        db.refresh(video)
        return video
    return _make


@pytest.fixture
def make_comment(db):
    def _make(owner, video, content='nice'):
        comment = Comment(content=content, owner_id=owner.id, video_id=video.id)
        db.add(comment)
        db.commit()
        db.refresh(comment)
        return comment
    return _make


@pytest.fixture
def make_tweet(db):
    def _make(owner, content='hello'):
        tweet = Tweet(content=content, owner_id=owner.id)
        db.add(tweet)
        db.commit()
        db.refresh(tweet)
        return tweet
    return _make


@pytest.fixture
def make_playlist(db):
    def _make(owner, name='Favourites', is_private=False):
        playlist = Playlist(name=name, owner_id=owner.id, is_private=is_private)
        db.add(playlist)
        db.commit()
        db.refresh(playlist)
        return playlist
    return _make


def auth(user):
    return {'Authorization': f'Bearer {create_access_token(user)}'}
