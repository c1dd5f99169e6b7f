import pytest


MOVIE = {
    "movie_id": 27205,
    "title": "Inception",
    "poster_url": "https://image.tmdb.org/t/p/w500/inception.jpg",
    "release_date": "2010-07-16",
    "vote_average": 8.4,
}


@pytest.fixture
def headers(logged_in):
    return {"Authorization": f"Bearer {logged_in}"}


def test_watchlist_requires_login(client):
    client.cookies.clear()
    assert client.get("/watchlist").status_code == 401


def test_add_and_list(client, headers):
    response = client.post("/watchlist", json=MOVIE, headers=headers)
    assert response.status_code == 201
    assert response.json()["title"] == "Inception"

    items = client.get("/watchlist", headers=headers).json()
    assert [item["movie_id"] for item in items] == [27205]


def test_add_is_idempotent(client, headers):
    client.post("/watchlist", json=MOVIE, headers=headers)
    client.post("/watchlist", json=MOVIE, headers=headers)
    assert len(client.get("/watchlist", headers=headers).json()) == 1


def test_remove(client, headers):
    client.post("/watchlist", json=MOVIE, headers=headers)
    assert client.delete("/watchlist/27205", headers=headers).status_code == 204
    assert client.get("/watchlist", headers=headers).json() == []
    assert client.delete("/watchlist/27205", headers=headers).status_code == 404


def test_reject_and_undo(client, headers):
    response = client.post("/watchlist/rejected", json={"movie_id": 603}, headers=headers)
    assert response.status_code == 201
    assert response.json() == {"movie_ids": [603]}

    assert client.delete("/watchlist/rejected/603", headers=headers).status_code == 204
    assert client.get("/watchlist/rejected", headers=headers).json() == {"movie_ids": []}
    assert client.delete("/watchlist/rejected/603", headers=headers).status_code == 404


def test_watchlist_and_rejected_stay_disjoint(client, headers):
    client.post("/watchlist/rejected", json={"movie_id": 27205}, headers=headers)
    client.post("/watchlist", json=MOVIE, headers=headers)
    assert client.get("/watchlist/rejected", headers=headers).json() == {"movie_ids": []}

    client.post("/watchlist/rejected", json={"movie_id": 27205}, headers=headers)
    assert client.get("/watchlist", headers=headers).json() == []
    assert client.get("/watchlist/rejected", headers=headers).json() == {"movie_ids": [27205]}


def test_lists_are_per_user(client, headers, signup):
    client.post("/watchlist", json=MOVIE, headers=headers)
    signup(email="b@x.com", username="bob")
    client.cookies.clear()
    token = client.post("/auth/login", data={"username": "bob", "password": "pw123456"}).json()["access_token"]

    assert client.get("/watchlist", headers={"Authorization": f"Bearer {token}"}).json() == []
