from __future__ import annotations

from conftest import assert_no_pending_events, receive_event


def _create_post(client, headers, **overrides):
    body = {"caption": "sunset", "image": "https://cdn.conexa.io/p/1.jpg", "categories": ["travel", " sky "]}
    body.update(overrides)
    return client.post("/api/posts", json=body, headers=headers)


def test_create_and_list_posts(client, make_user) -> None:
    alice, ha = make_user("alice")
    resp = _create_post(client, ha)
    assert resp.status_code == 201
    post = resp.json()
    assert post["categories"] == ["travel", "sky"]
    assert post["author"]["_id"] == alice

    listed = client.get("/api/posts", headers=ha).json()
    assert [p["_id"] for p in listed] == [post["_id"]]


def test_category_and_caption_validation(client, make_user) -> None:
    _, ha = make_user("alice")
    assert _create_post(client, ha, categories=[]).status_code == 422
    assert _create_post(client, ha, categories=[str(i) for i in range(11)]).status_code == 422
    assert _create_post(client, ha, caption="x" * 501).status_code == 422


def test_like_notifies_author_and_replaces_dislike(client, make_user) -> None:
    alice, ha = make_user("alice")
    bob, hb = make_user("bob")
    post_id = _create_post(client, ha).json()["_id"]

    with client.websocket_connect(f"/ws?userId={alice}") as wa:
        resp = client.post(f"/api/posts/{post_id}/dislike", headers=hb)
        assert resp.json()["dislikes"] == [bob]
        disliked = receive_event(wa, "notification")
        assert disliked["type"] == "dislike"
        assert disliked["message"] == "Your post was disliked"

        resp = client.post(f"/api/posts/{post_id}/like", headers=hb)
        assert resp.json()["likes"] == [bob]
        assert resp.json()["dislikes"] == []
        liked = receive_event(wa, "notification")
        assert liked["type"] == "like"
        assert liked["userId"] == bob
        assert liked["postId"] == post_id
        assert liked["userDetails"]["username"] == "bob"
        assert liked["postImage"] == "https://cdn.conexa.io/p/1.jpg"

        # liking your own post stores nothing and pushes nothing
        client.post(f"/api/posts/{post_id}/like", headers=ha)
        assert_no_pending_events(wa)

    stored = client.get("/api/notifications", headers=ha).json()
    assert [n["type"] for n in stored] == ["like", "dislike"]
    assert client.post("/api/notifications/read", headers=ha).json()["updated"] == 2


def test_share_counts_and_sends_message(client, make_user) -> None:
    alice, ha = make_user("alice")
    bob, hb = make_user("bob")
    carol, _ = make_user("carol")
    post_id = _create_post(client, ha).json()["_id"]

    with client.websocket_connect(f"/ws?userId={carol}") as wc, client.websocket_connect(f"/ws?userId={alice}") as wa:
        resp = client.post(f"/api/posts/{post_id}/share", json={"toUserId": carol}, headers=hb)
        assert resp.json()["shareCount"] == 1
        shared = receive_event(wc, "newMessage")
        assert shared["messageType"] == "post"
        assert shared["message"] == post_id
        assert receive_event(wa, "notification")["type"] == "share"

    assert client.post(f"/api/posts/{post_id}/share", headers=hb).json()["shareCount"] == 2


def test_only_author_deletes(client, make_user) -> None:
    _, ha = make_user("alice")
    _, hb = make_user("bob")
    post_id = _create_post(client, ha).json()["_id"]
    assert client.delete(f"/api/posts/{post_id}", headers=hb).status_code == 403
    assert client.delete(f"/api/posts/{post_id}", headers=ha).status_code == 200
    assert client.post(f"/api/posts/{post_id}/like", headers=hb).status_code == 404
