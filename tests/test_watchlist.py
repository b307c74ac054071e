from cinereview.models import User, WatchlistItem
from cinereview.recommendation_model import EMPTY_WATCHLIST_MESSAGE
from tests.conftest import auth


def watchlist_url(user):
    return f"/api/users/{user.pk}/watchlist"


def add(client, user, token, movie, **fields):
    body = {"movieId": str(movie.pk)}
    body.update(fields)
    return client.post(watchlist_url(user), headers=auth(token), json=body)


def test_add_and_list(client, user, token, movie):
    r = add(client, user, token, movie, priority="high", tags=["noir"])
    assert r.status_code == 201
    item = r.json()["data"]["watchlistItem"]
    assert item["status"] == "want_to_watch"
    assert item["priority"] == "high"
    assert item["watchedDate"] is None
    assert item["movie"]["title"] == movie.title

    data = client.get(watchlist_url(user), headers=auth(token)).json()["data"]
    assert len(data["watchlist"]) == 1
    assert data["statistics"]["totalMovies"] == 1
    assert data["statistics"]["wantToWatch"] == 1


def test_duplicate_add_conflicts(client, user, token, movie):
    add(client, user, token, movie)
    r = add(client, user, token, movie)
    assert r.status_code == 409
    assert r.json()["message"] == "Movie is already in your watchlist"


def test_add_unknown_movie(client, user, token):
    r = client.post(watchlist_url(user), headers=auth(token), json={"movieId": "0" * 24})
    assert r.status_code == 404


def test_watched_transitions_set_and_clear_date(client, user, token, movie):
    add(client, user, token, movie)
    url = f"{watchlist_url(user)}/{movie.pk}"

    r = client.put(url, headers=auth(token), json={"status": "watched", "personalRating": 5})
    assert r.json()["data"]["watchlistItem"]["watchedDate"] is not None
    watched_date = WatchlistItem.objects(movie=movie.pk).first().watched_date

    # staying watched keeps the original date
    client.put(url, headers=auth(token), json={"status": "watched", "notes": "again"})
    item = WatchlistItem.objects(movie=movie.pk).first()
    assert item.watched_date == watched_date
    assert item.notes == "again"

    r = client.put(url, headers=auth(token), json={"status": "watching"})
    assert r.json()["data"]["watchlistItem"]["watchedDate"] is None


def test_adding_as_watched_sets_date(client, user, token, movie):
    r = add(client, user, token, movie, status="watched")
    assert r.json()["data"]["watchlistItem"]["watchedDate"] is not None
    user.reload()
    assert user.stats.movies_watched == 1


def test_bulk_update_and_stats(client, user, token, make_movie):
    movie = make_movie(title="Runner", duration=110, genre=["Action"])
    other = make_movie(title="Walker", duration=95, genre=["Drama"])
    add(client, user, token, movie)
    add(client, user, token, other)

    r = client.patch(f"{watchlist_url(user)}/bulk", headers=auth(token), json={"items": [
        {"movieId": str(movie.pk), "status": "watched", "personalRating": 4},
        {"movieId": "0" * 24, "status": "watched"},
    ]})
    assert r.status_code == 200
    assert r.json()["data"] == {"updatedCount": 1, "totalRequested": 2}
    assert WatchlistItem.objects(movie=movie.pk).first().watched_date is not None

    stats = client.get(f"{watchlist_url(user)}/stats", headers=auth(token)).json()["data"]["stats"]
    assert stats["totalMovies"] == 2
    assert stats["watchedMovies"] == 1
    assert stats["wantToWatch"] == 1
    assert stats["totalWatchTime"] == 110
    assert stats["averagePersonalRating"] == 4.0
    assert stats["favoriteGenres"] == ["Action", "Drama"]
    assert User.objects(id=user.pk).first().stats.movies_watched == 1


def test_empty_stats(client, user, token):
    stats = client.get(f"{watchlist_url(user)}/stats", headers=auth(token)).json()["data"]["stats"]
    assert stats["totalMovies"] == 0
    assert stats["favoriteGenres"] == []
    assert stats["totalWatchTime"] == 0


def test_deleted_movies_leave_the_watchlist_view(client, user, token, movie, make_movie, admin_token):
    kept = make_movie(title="Kept")
    add(client, user, token, movie)
    add(client, user, token, kept)
    client.delete(f"/api/movies/{movie.pk}", headers=auth(admin_token))

    data = client.get(watchlist_url(user), headers=auth(token)).json()["data"]
    assert [i["movie"]["title"] for i in data["watchlist"]] == ["Kept"]
    assert data["pagination"]["total"] == 1
    assert data["statistics"]["totalMovies"] == 1


def test_list_filters(client, user, token, make_movie):
    action = make_movie(title="Runner", genre=["Action"])
    drama = make_movie(title="Walker", genre=["Drama"])
    add(client, user, token, action, status="watched", priority="low")
    add(client, user, token, drama)

    def titles(**params):
        r = client.get(watchlist_url(user), headers=auth(token), params=params)
        assert r.status_code == 200
        return [i["movie"]["title"] for i in r.json()["data"]["watchlist"]]

    assert titles(status="watched") == ["Runner"]
    assert titles(priority="medium") == ["Walker"]
    assert titles(genre="Drama") == ["Walker"]
    assert client.get(watchlist_url(user), headers=auth(token), params={"status": "seen"}).status_code == 400


def test_check_get_and_remove(client, user, token, movie):
    url = f"{watchlist_url(user)}/check/{movie.pk}"
    assert client.get(url, headers=auth(token)).json()["data"] == {"inWatchlist": False, "item": None}

    add(client, user, token, movie, priority="low")
    data = client.get(url, headers=auth(token)).json()["data"]
    assert data["inWatchlist"] is True
    assert data["item"]["priority"] == "low"

    item_url = f"{watchlist_url(user)}/{movie.pk}"
    assert client.get(item_url, headers=auth(token)).status_code == 200
    assert client.delete(item_url, headers=auth(token)).status_code == 200
    r = client.get(item_url, headers=auth(token))
    assert r.status_code == 404
    assert r.json()["message"] == "Movie not found in watchlist"


def test_watchlist_is_private_to_owner(client, user, other_token, admin_token):
    r = client.get(watchlist_url(user), headers=auth(other_token))
    assert r.status_code == 403
    assert client.get(watchlist_url(user), headers=auth(admin_token)).status_code == 200
    assert client.get(watchlist_url(user)).status_code == 401


def test_recommendations_need_a_watchlist(client, user, token):
    r = client.get(f"{watchlist_url(user)}/recommendations", headers=auth(token))
    assert r.status_code == 200
    body = r.json()
    assert body["message"] == EMPTY_WATCHLIST_MESSAGE
    assert body["data"] == {"recommendations": [], "basedOn": None}


def test_recommendations_follow_taste(client, user, token, make_movie):
    seen = make_movie(title="Seen", genre=["Horror"], director="Kim Park", average_rating=3.0)
    same_genre = make_movie(title="Same Genre", genre=["Horror"], director="Other", average_rating=1.0)
    same_director = make_movie(title="Same Director", genre=["Comedy"], director="Kim Park", average_rating=1.5)
    make_movie(title="Unrelated", genre=["Western"], director="Nobody", average_rating=1.0)
    well_rated = make_movie(title="Well Rated", genre=["War"], director="Nobody", average_rating=4.0)
    add(client, user, token, seen)

    r = client.get(f"{watchlist_url(user)}/recommendations", headers=auth(token), params={"limit": 10})
    data = r.json()["data"]
    titles = [m["title"] for m in data["recommendations"]]
    assert titles == [well_rated.title, same_director.title, same_genre.title]
    assert data["basedOn"] == {
        "favoriteGenres": ["Horror"],
        "favoriteDirectors": ["Kim Park"],
        "averageRatingPreference": 3.0,
    }


def test_recommendation_limit_bounds(client, user, token):
    url = f"{watchlist_url(user)}/recommendations"
    assert client.get(url, headers=auth(token), params={"limit": 51}).status_code == 400


def test_list_only_shows_own_items(client, user, token, other_user, other_token, make_movie, admin_token):
    mine = make_movie(title="Mine", genre=["Drama"])
    gone = make_movie(title="Gone", genre=["Drama"])
    make_movie(title="Unlisted", genre=["Drama"])
    theirs = make_movie(title="Theirs", genre=["Drama"])
    add(client, user, token, mine)
    add(client, user, token, gone)
    add(client, other_user, other_token, theirs)
    client.delete(f"/api/movies/{gone.pk}", headers=auth(admin_token))

    data = client.get(watchlist_url(user), headers=auth(token), params={"genre": "Drama"}).json()["data"]
    assert [i["movie"]["title"] for i in data["watchlist"]] == ["Mine"]
    assert data["pagination"]["total"] == 1
