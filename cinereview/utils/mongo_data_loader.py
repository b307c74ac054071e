import pandas as pd

from cinereview.constants import ACTIVE
from cinereview.models import Movie, Review, WatchlistItem, reference_id

WATCHLIST_COLUMNS = ["item_id", "movie_id", "status", "priority", "personal_rating", "date_added"]
MOVIE_COLUMNS = ["movie_id", "title", "genre", "director", "duration",
                 "release_year", "average_rating", "total_reviews"]
REVIEW_COLUMNS = ["review_id", "movie_id", "rating", "helpful_votes", "total_votes"]


# --- Load movie metadata ---
def get_movies_df(movie_ids, active_only=True):
    movies = Movie.objects(id__in=list(movie_ids))
    if active_only:
        movies = movies.filter(status=ACTIVE)
    return pd.DataFrame([{
        "movie_id":       m.pk,
        "title":          m.title,
        "genre":          list(m.genre or []),
        "director":       m.director or "",
        "duration":       m.duration or 0,
        "release_year":   m.release_year,
        "average_rating": m.average_rating or 0.0,
        "total_reviews":  m.total_reviews or 0,
    } for m in movies], columns=MOVIE_COLUMNS)


# --- Load a user's watchlist joined with its movies ---
def get_watchlist_df(user_id, active_only=True):
    items = WatchlistItem.objects(user=user_id)
    watchlist = pd.DataFrame([{
        "item_id":         i.pk,
        "movie_id":        reference_id(i, "movie"),
        "status":          i.status,
        "priority":        i.priority,
        "personal_rating": i.personal_rating,
        "date_added":      i.date_added,
    } for i in items], columns=WATCHLIST_COLUMNS)
    if watchlist.empty:
        return watchlist.reindex(columns=WATCHLIST_COLUMNS + MOVIE_COLUMNS[1:])

    movies = get_movies_df(watchlist["movie_id"].tolist(), active_only=active_only)
    return watchlist.merge(movies, on="movie_id", how="inner")


# --- Load a user's active reviews joined with their movies ---
def get_user_reviews_df(user_id):
    reviews = pd.DataFrame([{
        "review_id":     r.pk,
        "movie_id":      reference_id(r, "movie"),
        "rating":        r.rating,
        "helpful_votes": r.helpful_votes or 0,
        "total_votes":   r.total_votes or 0,
    } for r in Review.objects(user=user_id, status=ACTIVE)], columns=REVIEW_COLUMNS)
    if reviews.empty:
        return reviews.reindex(columns=REVIEW_COLUMNS + MOVIE_COLUMNS[1:])

    movies = get_movies_df(reviews["movie_id"].tolist(), active_only=False)
    return reviews.merge(movies, on="movie_id", how="inner")


def rank_by_frequency(values, n):
    """Top ``n`` values by occurrence; ties keep first-seen order."""
    values = values.dropna()
    if values.empty:
        return pd.Series(dtype="int64")
    counts = values.groupby(values, sort=False).size()
    return counts.sort_values(ascending=False, kind="stable").head(n)
