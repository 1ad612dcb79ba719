from conftest import auth

from videotube_service.models import Playlist, PlaylistVideo

API = '/api/v1/playlists'


def test_create_playlist(client, make_user):
    alice = make_user('alice')
    res = client.post(API, headers=auth(alice), json={'name': 'Road trip', 'description': 'songs'})
    assert res.status_code == 201
    data = res.json()['data']
    assert data['name'] == 'Road trip'
    assert data['is_private'] is True
    assert data['videos'] == []
    assert client.post(API, headers=auth(alice), json={'description': 'nameless'}).status_code == 400


def test_add_and_remove_videos(client, make_user, make_video, make_playlist):
    alice = make_user('alice')
    playlist = make_playlist(alice)
    first = make_video(alice, title='first')
    second = make_video(alice, title='second')

    res = client.patch(f'{API}/add/{first.id}/{playlist.id}', headers=auth(alice))
    assert res.json()['data'] == [first.id]
    res = client.patch(f'{API}/add/{second.id}/{playlist.id}', headers=auth(alice))
    assert res.json()['data'] == [first.id, second.id]

    res = client.patch(f'{API}/add/{first.id}/{playlist.id}', headers=auth(alice))
    assert res.status_code == 409

    res = client.patch(f'{API}/remove/{first.id}/{playlist.id}', headers=auth(alice))
    assert res.json()['data'] == [second.id]
    res = client.patch(f'{API}/remove/{first.id}/{playlist.id}', headers=auth(alice))
    assert res.status_code == 404


def test_add_missing_video(client, make_user, make_playlist):
    alice = make_user('alice')
    playlist = make_playlist(alice)
    missing = '00000000-0000-0000-0000-000000000000'
    assert client.patch(f'{API}/add/{missing}/{playlist.id}', headers=auth(alice)).status_code == 404
    assert client.patch(f'{API}/add/bad/{playlist.id}', headers=auth(alice)).status_code == 400


def test_only_owner_changes_playlist(client, db, make_user, make_video, make_playlist):
    alice = make_user('alice')
    bob = make_user('bob')
    playlist = make_playlist(alice)
    video = make_video(bob)

    assert client.patch(f'{API}/add/{video.id}/{playlist.id}', headers=auth(bob)).status_code == 403
    assert client.patch(f'{API}/{playlist.id}', headers=auth(bob), json={'name': 'mine'}).status_code == 403
    assert client.delete(f'{API}/{playlist.id}', headers=auth(bob)).status_code == 403
    db.expire_all()
    stored = db.get(Playlist, playlist.id)
    assert stored.name == 'Favourites'
    assert stored.videos == []


def test_update_playlist(client, make_user, make_playlist):
    alice = make_user('alice')
    playlist = make_playlist(alice)
    res = client.patch(f'{API}/{playlist.id}', headers=auth(alice),
                       json={'name': 'Renamed', 'is_private': True})
    data = res.json()['data']
    assert data['name'] == 'Renamed'
    assert data['is_private'] is True
    assert client.patch(f'{API}/{playlist.id}', headers=auth(alice), json={'name': ' '}).status_code == 400


def test_private_playlist_visibility(client, make_user, make_playlist):
    alice = make_user('alice')
    bob = make_user('bob')
    secret = make_playlist(alice, name='secret', is_private=True)
    make_playlist(alice, name='open', is_private=False)

    assert client.get(f'{API}/{secret.id}', headers=auth(alice)).status_code == 200
    assert client.get(f'{API}/{secret.id}', headers=auth(bob)).status_code == 403

    res = client.get(f'{API}/user/{alice.id}', headers=auth(bob))
    assert [p['name'] for p in res.json()['data']] == ['open']
    res = client.get(f'{API}/user/{alice.id}', headers=auth(alice))
    assert sorted(p['name'] for p in res.json()['data']) == ['open', 'secret']


def test_delete_playlist_drops_entries(client, db, make_user, make_video, make_playlist):
    alice = make_user('alice')
    playlist = make_playlist(alice)
    playlist_id = playlist.id
    video = make_video(alice)
    client.patch(f'{API}/add/{video.id}/{playlist_id}', headers=auth(alice))

    assert client.delete(f'{API}/{playlist_id}', headers=auth(alice)).status_code == 200
    db.expire_all()
    assert db.get(Playlist, playlist_id) is None
    assert db.query(PlaylistVideo).filter_by(playlist_id=playlist_id).count() == 0
    assert client.get(f'{API}/{playlist_id}', headers=auth(alice)).status_code == 404


def test_playlist_bodies_accept_is_private_alias(client, make_user):
    alice = make_user('alice')
    res = client.post(API, headers=auth(alice), json={'name': 'Open', 'isPrivate': False})
    assert res.status_code == 201
    playlist = res.json()['data']
    assert playlist['is_private'] is False

    res = client.patch(f"{API}/{playlist['id']}", headers=auth(alice), json={'isPrivate': True})
    assert res.json()['data']['is_private'] is True


def test_cannot_add_someone_elses_draft(client, make_user, make_video, make_playlist):
    alice = make_user('alice')
    bob = make_user('bob')
    draft = make_video(alice, is_published=False)
    playlist = make_playlist(bob)
    assert client.patch(f'{API}/add/{draft.id}/{playlist.id}', headers=auth(bob)).status_code == 404
