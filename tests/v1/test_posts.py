# mypy: ignore-errors
# tests/v1/test_posts.py
"""Tests for post-related endpoints."""

from fastapi import status

from roastr.core.settings import settings
from tests.conftest import auth_headers, doc


def _create(client, headers, tags, **overrides):
    payload = {
        "title": "Roast of the day",
        "content": doc("Your code has more bugs than a rainforest."),
        "tag_ids": [tags["Roast"].id],
        "is_anonymous": False,
    }
    payload.update(overrides)
    return client.post("/api/v1/posts/", json=payload, headers=headers)


def test_create_post(client, auth_token, tags, test_user) -> None:
    response = _create(client, auth_token, tags)

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["status"] == "visible"
    assert data["author_id"] == test_user.id
    assert data["username"] == "roaster"
    assert data["content_html"] == "<p>Your code has more bugs than a rainforest.</p>"
    assert [tag["name"] for tag in data["tags"]] == ["Roast"]
    assert data["upvotes"] == data["downvotes"] == 0


def test_create_post_from_plain_text(client, auth_token, tags) -> None:
    response = _create(client, auth_token, tags, content="line one\nline two")
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["content_html"] == "<p>line one</p><p>line two</p>"


def test_create_post_validation_error(client, auth_token, tags) -> None:
    response = _create(client, auth_token, tags, title="   ")
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.json()["error"] == "validation_error"

    response = _create(client, auth_token, tags, tag_ids=[])
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_attributed_post_requires_login(client, tags) -> None:
    response = _create(client, {}, tags)
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["error"] == "authentication_required"


def test_invalid_token_is_rejected(client, tags) -> None:
    response = _create(client, {"Authorization": "Bearer not-a-jwt"}, tags)
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_anonymous_post_hides_author(client, auth_token, tags) -> None:
    response = _create(client, auth_token, tags, is_anonymous=True)

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["author_id"] is None
    assert data["username"] == "Anonymous"
    assert "submitter_key" not in data


def test_anonymous_rate_limit(client, auth_token, tags, clock) -> None:
    for _ in range(2):
        assert _create(client, auth_token, tags, is_anonymous=True).status_code == 201
        clock.advance(hours=1)

    response = _create(client, auth_token, tags, is_anonymous=True)

    assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS
    body = response.json()
    assert body["error"] == "rate_limited"
    assert body["remaining"] == 0
    assert response.headers["Retry-After"] == str(22 * 3600)

    clock.advance(hours=22)
    assert _create(client, auth_token, tags, is_anonymous=True).status_code == 201


def test_sessionless_anonymous_post(client, tags) -> None:
    for _ in range(2):
        assert _create(client, {}, tags, is_anonymous=True).status_code == 201
    assert _create(client, {}, tags, is_anonymous=True).status_code == 429


def test_feed_filters_and_sorts(client, auth_token, other_auth_token, tags, clock) -> None:
    first = _create(client, auth_token, tags, title="first").json()
    clock.advance(minutes=1)
    spicy = _create(
        client, auth_token, tags, title="spicy", tag_ids=[tags["Dark"].id, tags["NSFW"].id]
    ).json()
    clock.advance(minutes=1)
    joke = _create(client, other_auth_token, tags, title="joke", tag_ids=[tags["Joke"].id]).json()
    client.post("/api/v1/votes/", json={"post_id": first["id"], "vote_type": "upvote"}, headers=other_auth_token)

    feed = client.get("/api/v1/posts/").json()
    assert [post["id"] for post in feed] == [joke["id"], first["id"]]

    feed = client.get("/api/v1/posts/", params={"show_nsfw": "true", "sort": "oldest"}).json()
    assert [post["id"] for post in feed] == [first["id"], spicy["id"], joke["id"]]

    feed = client.get("/api/v1/posts/", params={"sort": "most_voted"}).json()
    assert [post["id"] for post in feed] == [first["id"], joke["id"]]

    feed = client.get(
        "/api/v1/posts/",
        params=[("tags", tags["Joke"].id), ("tags", tags["Dark"].id), ("show_nsfw", "true")],
    ).json()
    assert [post["id"] for post in feed] == [joke["id"], spicy["id"]]

    clock.advance(days=2)
    assert client.get("/api/v1/posts/", params={"window": "day"}).json() == []


def test_feed_rejects_unknown_sort(client) -> None:
    response = client.get("/api/v1/posts/", params={"sort": "rising"})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_feed_annotates_viewer_state(client, auth_token, other_auth_token, tags) -> None:
    post = _create(client, auth_token, tags).json()
    client.post("/api/v1/votes/", json={"post_id": post["id"], "vote_type": "downvote"}, headers=other_auth_token)
    client.put(f"/api/v1/posts/{post['id']}/save", headers=other_auth_token)

    [viewed] = client.get("/api/v1/posts/", headers=other_auth_token).json()
    assert viewed["user_vote"] == "downvote"
    assert viewed["is_saved"] is True

    [anonymous_view] = client.get("/api/v1/posts/").json()
    assert anonymous_view["user_vote"] is None
    assert anonymous_view["is_saved"] is False


def test_get_post_and_not_found(client, auth_token, tags) -> None:
    post = _create(client, auth_token, tags).json()
    assert client.get(f"/api/v1/posts/{post['id']}").json()["title"] == "Roast of the day"

    response = client.get("/api/v1/posts/99999")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"detail": "Post not found", "error": "not_found"}


def test_edit_post_and_history(client, auth_token, tags, clock) -> None:
    post = _create(client, auth_token, tags).json()
    clock.advance(minutes=10)

    response = client.patch(
        f"/api/v1/posts/{post['id']}",
        json={"content": doc("Edited burn")},
        headers=auth_token,
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["content_html"] == "<p>Edited burn</p>"
    assert response.json()["edit_count"] == 1

    history = client.get(f"/api/v1/posts/{post['id']}/history").json()
    assert [entry["content"] for entry in history] == [post["content"]]


def test_edit_same_content_conflicts(client, auth_token, tags) -> None:
    post = _create(client, auth_token, tags).json()
    response = client.patch(
        f"/api/v1/posts/{post['id']}",
        json={"content": post["content"]},
        headers=auth_token,
    )
    assert response.status_code == status.HTTP_409_CONFLICT


def test_edit_by_other_user_forbidden(client, auth_token, other_auth_token, tags) -> None:
    post = _create(client, auth_token, tags).json()
    response = client.patch(
        f"/api/v1/posts/{post['id']}",
        json={"content": doc("mine now")},
        headers=other_auth_token,
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_delete_post(client, auth_token, other_auth_token, tags) -> None:
    post = _create(client, auth_token, tags).json()

    assert client.delete(f"/api/v1/posts/{post['id']}", headers=other_auth_token).status_code == 403
    assert client.delete(f"/api/v1/posts/{post['id']}", headers=auth_token).status_code == 204
    assert client.delete(f"/api/v1/posts/{post['id']}", headers=auth_token).status_code == 409
    assert client.get(f"/api/v1/posts/{post['id']}").status_code == 404
    assert client.get("/api/v1/posts/").json() == []


def test_report_post_auto_hides(client, auth_token, other_auth_token, tags, monkeypatch) -> None:
    monkeypatch.setattr(settings, "report_hide_threshold", 2)
    post = _create(client, auth_token, tags).json()

    first = client.post(f"/api/v1/posts/{post['id']}/report", headers=other_auth_token)
    assert first.status_code == status.HTTP_201_CREATED
    assert first.json() == {
        "post_id": post["id"],
        "report_count": 1,
        "status": "visible",
        "auto_hidden": False,
    }

    second = client.post(f"/api/v1/posts/{post['id']}/report")
    assert second.json()["auto_hidden"] is True
    assert second.json()["status"] == "hidden_reported"

    assert client.get("/api/v1/posts/").json() == []
    # The author still sees their hidden post.
    assert client.get(f"/api/v1/posts/{post['id']}", headers=auth_token).status_code == 200


def test_save_and_unsave(client, auth_token, other_user, tags) -> None:
    post = _create(client, auth_token, tags).json()
    headers = auth_headers(other_user)

    assert client.put(f"/api/v1/posts/{post['id']}/save", headers=headers).json()["is_saved"] is True
    assert client.put(f"/api/v1/posts/{post['id']}/save", headers=headers).status_code == 200
    saved = client.get("/api/v1/users/me/saved", headers=headers).json()
    assert [item["id"] for item in saved] == [post["id"]]

    assert client.delete(f"/api/v1/posts/{post['id']}/save", headers=headers).json()["is_saved"] is False
    assert client.get("/api/v1/users/me/saved", headers=headers).json() == []


def test_save_requires_login(client, auth_token, tags) -> None:
    post = _create(client, auth_token, tags).json()
    assert client.put(f"/api/v1/posts/{post['id']}/save").status_code == status.HTTP_401_UNAUTHORIZED
