from cinebook import crud, models, schemas

MOVIE = schemas.MovieIn(movie_id=603, title="The Matrix", release_date="1999-03-31", vote_average=8.2)


def make_user(db):
    user = crud.create_user(db, email="a@x.com", username="alice", password_hash="x")
    db.commit()
    return user


def stale_first_lookup(real):
    # The first existence check misses a row a concurrent request just inserted.
    calls = []

    def lookup(*args, **kwargs):
        calls.append(args)
        if len(calls) == 1:
            return None
        return real(*args, **kwargs)
    return lookup


def test_concurrent_watchlist_add_returns_existing_row(db, monkeypatch):
    user = make_user(db)
    first = crud.add_to_watchlist(db, user.id, MOVIE)

    monkeypatch.setattr(crud, "get_watchlist_item", stale_first_lookup(crud.get_watchlist_item))
    second = crud.add_to_watchlist(db, user.id, MOVIE)

    assert second.id == first.id
    assert db.query(models.WatchlistItem).count() == 1


def test_concurrent_reject_returns_existing_row(db, monkeypatch):
    user = make_user(db)
    first = crud.reject_movie(db, user.id, 603)

    monkeypatch.setattr(crud, "get_rejected_movie", stale_first_lookup(crud.get_rejected_movie))
    second = crud.reject_movie(db, user.id, 603)

    assert second.id == first.id
    assert crud.list_rejected(db, user.id) == [603]
