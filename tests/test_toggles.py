import pytest

from videotube_service import projections, toggles
from videotube_service.errors import Conflict, Forbidden, NotFound
from videotube_service.models import Like, LikeTarget, Subscription, View
from videotube_service.toggles import ToggleResult


def test_like_toggle_twice_restores_like_count(db, make_user, make_video):
    owner = make_user('owner')
    fan = make_user('fan')
    video = make_video(owner)
    before = projections.like_count(db, LikeTarget.video, video.id)

    assert toggles.toggle_like(db, fan.id, LikeTarget.video, video.id) is ToggleResult.ADDED
    assert projections.like_count(db, LikeTarget.video, video.id) == before + 1
    assert toggles.toggle_like(db, fan.id, LikeTarget.video, video.id) is ToggleResult.REMOVED
    assert projections.like_count(db, LikeTarget.video, video.id) == before


def test_at_most_one_like_per_actor_and_target(db, make_user, make_tweet):
    author = make_user('author')
    fan = make_user('fan')
    tweet = make_tweet(author)
    for _ in range(5):
        toggles.toggle_like(db, fan.id, LikeTarget.tweet, tweet.id)
    likes = db.query(Like).filter_by(liked_by=fan.id, target_id=tweet.id).all()
    assert len(likes) == 1


def test_like_targets_are_kept_apart(db, make_user, make_video, make_comment):
    owner = make_user('owner')
    video = make_video(owner)
    comment = make_comment(owner, video)
    toggles.toggle_like(db, owner.id, LikeTarget.video, video.id)
    toggles.toggle_like(db, owner.id, LikeTarget.comment, comment.id)
    assert projections.like_count(db, LikeTarget.video, video.id) == 1
    assert projections.like_count(db, LikeTarget.comment, comment.id) == 1


def test_like_missing_target_is_not_found(db, make_user):
    fan = make_user('fan')
    with pytest.raises(NotFound):
        toggles.toggle_like(db, fan.id, LikeTarget.comment, '00000000-0000-0000-0000-000000000000')
    assert db.query(Like).count() == 0


def test_subscription_toggle(db, make_user):
    channel = make_user('channel')
    fan = make_user('fan')
    assert toggles.toggle_subscription(db, fan.id, channel.id) is ToggleResult.ADDED
    assert projections.channel_subscribers(db, channel.id) == [fan.id]
    assert toggles.toggle_subscription(db, fan.id, channel.id) is ToggleResult.REMOVED
    assert projections.channel_subscribers(db, channel.id) == []


def test_self_subscription_is_rejected_without_mutation(db, make_user):
    user = make_user('loner')
    with pytest.raises(Forbidden):
        toggles.toggle_subscription(db, user.id, user.id)
    assert db.query(Subscription).count() == 0


def test_subscription_to_missing_channel(db, make_user):
    fan = make_user('fan')
    with pytest.raises(NotFound):
        toggles.toggle_subscription(db, fan.id, '00000000-0000-0000-0000-000000000000')


def test_record_view_is_idempotent(db, make_user, make_video):
    owner = make_user('owner')
    viewer = make_user('viewer')
    video = make_video(owner)
    assert toggles.record_view(db, viewer.id, video.id) is ToggleResult.ADDED
    assert toggles.record_view(db, viewer.id, video.id) is ToggleResult.UNCHANGED
    assert db.query(View).filter_by(video_id=video.id).count() == 1


class _MissesExisting:
    """Query stand-in whose lookup never sees the row already stored."""

    def filter_by(self, **kw):
        return self

    def first(self):
        return None


def test_duplicate_insert_race_is_a_conflict(db, make_user, make_video, monkeypatch):
    owner = make_user('owner')
    fan = make_user('fan')
    video = make_video(owner)
    toggles.toggle_like(db, fan.id, LikeTarget.video, video.id)

    # the lookup runs before a concurrent writer's row is visible
    monkeypatch.setattr(db, 'query', lambda *models: _MissesExisting())
    with pytest.raises(Conflict) as info:
        toggles.toggle_like(db, fan.id, LikeTarget.video, video.id)
    assert info.value.status_code == 409
    monkeypatch.undo()

    assert db.query(Like).filter_by(liked_by=fan.id, target_id=video.id).count() == 1


def test_duplicate_view_race_is_a_conflict(db, make_user, make_video, monkeypatch):
    owner = make_user('owner')
    viewer = make_user('viewer')
    video = make_video(owner)
    toggles.record_view(db, viewer.id, video.id)

    monkeypatch.setattr(db, 'query', lambda *models: _MissesExisting())
    with pytest.raises(Conflict):
        toggles.record_view(db, viewer.id, video.id)
    monkeypatch.undo()

    assert db.query(View).filter_by(video_id=video.id).count() == 1
