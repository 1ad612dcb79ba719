from datetime import datetime, timedelta

from conftest import auth

from videotube_service.models import Comment, Like

MISSING = '00000000-0000-0000-0000-000000000000'


def test_add_and_list_comments(client, make_user, make_video):
    alice = make_user('alice')
    bob = make_user('bob')
    video = make_video(alice)
    res = client.post(f'/api/v1/comments/{video.id}', headers=auth(bob), json={'content': ' first! '})
    assert res.status_code == 201
    assert res.json()['data']['content'] == 'first!'
    assert res.json()['data']['owner_id'] == bob.id

    res = client.get(f'/api/v1/comments/{video.id}', headers=auth(alice))
    assert [c['content'] for c in res.json()['data']] == ['first!']


def test_add_comment_validation(client, make_user, make_video):
    alice = make_user('alice')
    video = make_video(alice)
    assert client.post(f'/api/v1/comments/{video.id}', headers=auth(alice), json={}).status_code == 400
    res = client.post(f'/api/v1/comments/{MISSING}', headers=auth(alice), json={'content': 'hi'})
    assert res.status_code == 404


def test_comments_of_a_quiet_video_are_empty(client, make_user, make_video):
    alice = make_user('alice')
    video = make_video(alice)
    res = client.get(f'/api/v1/comments/{video.id}', headers=auth(alice))
    assert res.status_code == 200
    assert res.json()['data'] == []
    assert client.get(f'/api/v1/comments/{MISSING}', headers=auth(alice)).status_code == 404


def test_comment_pages(client, db, make_user, make_video):
    alice = make_user('alice')
    video = make_video(alice)
    base = datetime(2024, 1, 1)
    for i in range(15):
        db.add(Comment(content=f'c{i}', video_id=video.id, owner_id=alice.id,
                       created_at=base + timedelta(minutes=i)))
    db.commit()
    res = client.get(f'/api/v1/comments/{video.id}', headers=auth(alice), params={'page': 2, 'limit': 10})
    assert [c['content'] for c in res.json()['data']] == [f'c{i}' for i in range(10, 15)]
    res = client.get(f'/api/v1/comments/{video.id}', headers=auth(alice),
                     params={'sortType': 'desc', 'limit': 1})
    assert res.json()['data'][0]['content'] == 'c14'


def test_only_author_edits_or_deletes_comment(client, db, make_user, make_video, make_comment):
    alice = make_user('alice')
    bob = make_user('bob')
    comment = make_comment(bob, make_video(alice), 'mine')

    res = client.patch(f'/api/v1/comments/c/{comment.id}', headers=auth(alice), json={'content': 'edited'})
    assert res.status_code == 403
    assert client.delete(f'/api/v1/comments/c/{comment.id}', headers=auth(alice)).status_code == 403

    res = client.patch(f'/api/v1/comments/c/{comment.id}', headers=auth(bob), json={'content': 'edited'})
    assert res.status_code == 200
    assert res.json()['data']['content'] == 'edited'


def test_delete_comment_drops_its_likes(client, db, make_user, make_video, make_comment):
    alice = make_user('alice')
    bob = make_user('bob')
    comment = make_comment(bob, make_video(alice))
    comment_id = comment.id
    client.post(f'/api/v1/likes/toggle/c/{comment_id}', headers=auth(alice))

    res = client.delete(f'/api/v1/comments/c/{comment_id}', headers=auth(bob))
    assert res.status_code == 200
    assert res.json()['data']['id'] == comment_id
    db.expire_all()
    assert db.get(Comment, comment_id) is None
    assert db.query(Like).filter_by(target_id=comment_id).count() == 0
    assert client.delete(f'/api/v1/comments/c/{comment_id}', headers=auth(bob)).status_code == 404
