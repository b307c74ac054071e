from datetime import datetime

from cinereview import stats
from cinereview.models import Movie, Review, User
from cinereview.security import create_access_token
from tests.conftest import auth


def reviews_url(movie):
    return f"/api/movies/{movie.pk}/reviews"


def post_review(client, movie, token, **fields):
    body = {"rating": 4, "reviewText": "Tense and well acted."}
    body.update(fields)
    return client.post(reviews_url(movie), headers=auth(token), json=body)


def test_review_lifecycle_keeps_movie_stats_in_line(client, movie, user, token):
    r = post_review(client, movie, token)
    assert r.status_code == 201
    review = r.json()["data"]["review"]
    assert review["user"]["username"] == "viewer"
    assert review["isRecommended"] is True

    movie.reload()
    assert movie.average_rating == 4.0
    assert movie.total_reviews == 1
    assert movie.rating_distribution == {"1": 0, "2": 0, "3": 0, "4": 1, "5": 0}

    duplicate = post_review(client, movie, token, rating=5)
    assert duplicate.status_code == 409
    assert duplicate.json()["message"] == "You have already reviewed this movie"

    r = client.put(f"{reviews_url(movie)}/{review['_id']}", headers=auth(token), json={"rating": 2})
    assert r.status_code == 200
    assert r.json()["data"]["review"]["isEdited"] is True
    movie.reload()
    assert movie.average_rating == 2.0
    assert movie.rating_distribution["2"] == 1
    assert movie.rating_distribution["4"] == 0

    r = client.delete(f"{reviews_url(movie)}/{review['_id']}", headers=auth(token))
    assert r.status_code == 200
    movie.reload()
    assert movie.average_rating == 0
    assert movie.total_reviews == 0
    assert Review.objects(id=review["_id"]).first().status == "deleted"

    user.reload()
    assert user.stats.total_reviews == 0


def test_average_is_rounded_half_up(client, movie, make_user):
    for name, rating in (("first", 5), ("second", 4), ("third", 4), ("fourth", 4)):
        reviewer = make_user(name)
        assert post_review(client, movie, create_access_token(reviewer.pk), rating=rating).status_code == 201
    movie.reload()
    # 17 / 4 = 4.25
    assert movie.average_rating == 4.3
    assert movie.total_reviews == 4


def test_user_stats_follow_reviews(client, make_movie, user, token):
    first = make_movie(title="One")
    second = make_movie(title="Two")
    post_review(client, first, token, rating=5)
    post_review(client, second, token, rating=2)
    user.reload()
    assert user.stats.total_reviews == 2
    assert user.stats.average_rating == 3.5


def test_review_survives_stats_failure(client, movie, token, monkeypatch):
    def broken(movie_id):
        raise RuntimeError("aggregation unavailable")

    monkeypatch.setattr(stats, "recompute_movie_stats", broken)
    r = post_review(client, movie, token)
    assert r.status_code == 201
    assert Review.objects(movie=movie.pk).count() == 1
    movie.reload()
    assert movie.total_reviews == 0

    # the next successful recompute repairs the cached figures
    monkeypatch.undo()
    stats.recompute_movie_stats(movie.pk)
    movie.reload()
    assert movie.total_reviews == 1


def test_can_review_again_after_deleting(client, movie, token):
    first = post_review(client, movie, token).json()["data"]["review"]
    client.delete(f"{reviews_url(movie)}/{first['_id']}", headers=auth(token))
    r = post_review(client, movie, token, rating=3)
    assert r.status_code == 201
    movie.reload()
    assert movie.total_reviews == 1
    assert movie.average_rating == 3.0


def test_only_author_or_admin_may_edit(client, movie, token, other_token, admin_token):
    review = post_review(client, movie, token).json()["data"]["review"]
    url = f"{reviews_url(movie)}/{review['_id']}"

    r = client.put(url, headers=auth(other_token), json={"rating": 1})
    assert r.status_code == 403
    assert r.json()["message"] == "Not authorized to update this review"

    assert client.put(url, headers=auth(admin_token), json={"rating": 3}).status_code == 200
    assert client.delete(url, headers=auth(other_token)).status_code == 403


def test_writes_require_login(client, movie):
    assert client.post(reviews_url(movie), json={"rating": 4}).status_code == 401


def test_review_for_unknown_movie(client, token):
    r = client.post("/api/movies/" + "0" * 24 + "/reviews", headers=auth(token), json={"rating": 4})
    assert r.status_code == 404
    assert r.json()["message"] == "Movie not found"


def test_list_reviews_with_statistics(client, movie, token, other_token):
    post_review(client, movie, token, rating=5)
    post_review(client, movie, other_token, rating=2)

    data = client.get(reviews_url(movie)).json()["data"]
    assert data["movieInfo"]["title"] == movie.title
    assert data["statistics"]["averageRating"] == 3.5
    assert data["statistics"]["totalReviews"] == 2
    assert data["pagination"]["total"] == 2

    filtered = client.get(reviews_url(movie), params={"rating": 5}).json()["data"]
    assert [r["rating"] for r in filtered["reviews"]] == [5]

    by_rating = client.get(reviews_url(movie), params={"sortBy": "rating", "sortOrder": "asc"}).json()["data"]
    assert [r["rating"] for r in by_rating["reviews"]] == [2, 5]


def test_my_review(client, movie, token):
    r = client.get(f"{reviews_url(movie)}/my-review", headers=auth(token))
    assert r.status_code == 404
    post_review(client, movie, token, rating=3)
    r = client.get(f"{reviews_url(movie)}/my-review", headers=auth(token))
    assert r.json()["data"]["review"]["rating"] == 3


def test_helpful_votes(client, movie, token, other_token):
    review = post_review(client, movie, token).json()["data"]["review"]
    url = f"{reviews_url(movie)}/{review['_id']}/helpful"

    own = client.post(url, headers=auth(token), json={"isHelpful": True})
    assert own.status_code == 400

    client.post(url, headers=auth(other_token), json={"isHelpful": True})
    client.post(url, headers=auth(other_token), json={"isHelpful": True})
    r = client.post(url, headers=auth(other_token), json={"isHelpful": False})
    assert r.status_code == 200
    assert r.json()["data"] == {"helpfulVotes": 2, "totalVotes": 3, "helpfulnessRatio": 67}


def test_review_stays_readable_when_movie_is_deleted(client, movie, token, admin_token):
    review = post_review(client, movie, token).json()["data"]["review"]
    client.delete(f"/api/movies/{movie.pk}", headers=auth(admin_token))

    r = client.get(f"{reviews_url(movie)}/{review['_id']}")
    assert r.status_code == 200
    assert r.json()["data"]["review"]["movie"]["title"] == movie.title
    assert Movie.objects(id=movie.pk).first().status == "deleted"


def test_user_profile_counts_only_active_reviews(client, movie, user, token):
    review = post_review(client, movie, token).json()["data"]["review"]
    client.delete(f"{reviews_url(movie)}/{review['_id']}", headers=auth(token))
    data = client.get(f"/api/users/{user.pk}").json()["data"]
    assert data["user"]["stats"]["totalReviews"] == 0
    assert data["recentReviews"] == []
    assert User.objects(id=user.pk).first().stats.total_reviews == 0


def test_stats_refresh_touches_updated_at(client, movie, user, token):
    stale = datetime(2000, 1, 1)
    Movie.objects(id=movie.pk).update_one(set__updated_at=stale)
    User.objects(id=user.pk).update_one(set__updated_at=stale)

    post_review(client, movie, token, rating=4)
    movie.reload()
    user.reload()
    assert movie.updated_at > stale
    assert user.updated_at > stale
