# mypy: ignore-errors
# tests/v1/test_tags_and_leaderboard.py
"""Tests for the tag catalog and leaderboard endpoints."""

from fastapi import status

from tests.conftest import auth_headers


def test_list_tags(client, tags) -> None:
    response = client.get("/api/v1/tags/")
    assert response.status_code == status.HTTP_200_OK
    by_name = {tag["name"]: tag for tag in response.json()}
    assert by_name["NSFW"]["is_sensitive"] is True
    assert by_name["Roast"]["is_sensitive"] is False


def test_create_tag(client, admin, auth_token, tags) -> None:
    payload = {"name": "Savage", "emoji": "🗡️", "is_sensitive": False}
    assert client.post("/api/v1/tags/", json=payload, headers=auth_token).status_code == 403

    response = client.post("/api/v1/tags/", json=payload, headers=auth_headers(admin))
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["name"] == "Savage"

    duplicate = client.post("/api/v1/tags/", json=payload, headers=auth_headers(admin))
    assert duplicate.status_code == status.HTTP_409_CONFLICT


def test_leaderboard(client, make_post, test_user, other_user, other_auth_token, auth_token) -> None:
    top = make_post(test_user)
    make_post(test_user, title="another")
    make_post(test_user, title="third")
    runner_up = make_post(other_user)

    client.post("/api/v1/votes/", json={"post_id": top.id, "vote_type": "upvote"}, headers=other_auth_token)
    client.post("/api/v1/votes/", json={"post_id": runner_up.id, "vote_type": "upvote"}, headers=auth_token)

    response = client.get("/api/v1/leaderboard/")

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == [
        {
            "rank": 1,
            "user_id": test_user.id,
            "username": "roaster",
            "total_posts": 3,
            "total_upvotes": 1,
            "score": 5,
        },
        {
            "rank": 2,
            "user_id": other_user.id,
            "username": "heckler",
            "total_posts": 1,
            "total_upvotes": 1,
            "score": 3,
        },
    ]
    assert len(client.get("/api/v1/leaderboard/", params={"limit": 1}).json()) == 1


def test_empty_leaderboard(client, test_user) -> None:
    assert client.get("/api/v1/leaderboard/").json() == []
