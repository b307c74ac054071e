from mongoengine.queryset.visitor import Q

from cinereview.models import Movie, WatchlistItem, reference_id
from cinereview.utils.mongo_data_loader import get_watchlist_df, rank_by_frequency
from cinereview.utils.numbers import round_half_up

EMPTY_WATCHLIST_MESSAGE = "Add movies to your watchlist to get personalized recommendations"

TOP_GENRES = 3
TOP_DIRECTORS = 2
RATING_TOLERANCE = 0.5


def watchlist_preferences(watchlist_df):
    """Genre/director tallies and rating taste from a joined watchlist frame."""
    genres = watchlist_df["genre"].explode()
    directors = watchlist_df["director"]
    directors = directors[directors != ""]
    return {
        "favoriteGenres": rank_by_frequency(genres, TOP_GENRES).index.tolist(),
        "favoriteDirectors": rank_by_frequency(directors, TOP_DIRECTORS).index.tolist(),
        "averageRatingPreference": float(watchlist_df["average_rating"].fillna(0).mean()),
    }


def candidate_movies(exclude_ids, preferences, limit):
    match_any = (
        Q(genre__in=preferences["favoriteGenres"])
        | Q(director__in=preferences["favoriteDirectors"])
        | Q(average_rating__gte=preferences["averageRatingPreference"] - RATING_TOLERANCE)
    )
    return list(
        Movie.objects.active()
        .filter(id__nin=list(exclude_ids))
        .filter(match_any)
        .order_by("-average_rating", "-total_reviews", "+id")
        .limit(limit)
    )


def recommend_for_user(user_id, limit=10):
    """Content-based picks for a user, derived from their watchlist.

    Returns a dict with ``recommendations`` (Movie documents), ``basedOn``
    (the preference profile, or None) and ``message`` when there is nothing
    to base recommendations on.
    """
    # inactive movies still describe the user's taste
    watchlist = get_watchlist_df(user_id, active_only=False)
    if watchlist.empty:
        return {"recommendations": [], "basedOn": None, "message": EMPTY_WATCHLIST_MESSAGE}

    preferences = watchlist_preferences(watchlist)
    exclude_ids = [reference_id(i, "movie") for i in WatchlistItem.objects(user=user_id).only("movie")]
    movies = candidate_movies(exclude_ids, preferences, limit)

    based_on = dict(preferences)
    based_on["averageRatingPreference"] = round_half_up(preferences["averageRatingPreference"], 1)
    return {"recommendations": movies, "basedOn": based_on, "message": None}
