import logging

from mongoengine.errors import NotUniqueError

from cinereview import stats
from cinereview.constants import WATCHLIST_SORT_FIELDS
from cinereview.errors import ConflictError, NotFoundError
from cinereview.models import Movie, Reminder, WatchlistItem, reference_id, utcnow
from cinereview.queries import as_list, order_by, paginate
from cinereview.services.movies import get_movie
from cinereview.services.users import get_user
from cinereview.utils.mongo_data_loader import get_watchlist_df, rank_by_frequency
from cinereview.utils.numbers import round_half_up

logger = logging.getLogger(__name__)

DEFAULT_SORT = "dateAdded"
FAVORITE_GENRES = 5

EMPTY_STATS = {
    "totalMovies": 0,
    "watchedMovies": 0,
    "wantToWatch": 0,
    "currentlyWatching": 0,
    "onHold": 0,
    "dropped": 0,
    "averagePersonalRating": 0,
    "favoriteGenres": [],
    "totalWatchTime": 0,
}

STATUS_KEYS = {
    "watched": "watchedMovies",
    "want_to_watch": "wantToWatch",
    "watching": "currentlyWatching",
    "on_hold": "onHold",
    "dropped": "dropped",
}


def list_watchlist(user_id, page=1, limit=20, status=None, priority=None, genre=None,
                   sort_by=DEFAULT_SORT, sort_order="desc"):
    """Watchlist page; items whose movie is no longer active are left out."""
    items = WatchlistItem.objects(user=user_id)
    listed = [reference_id(i, "movie") for i in items.only("movie")]
    movies = Movie.objects.active().filter(id__in=listed)
    genres = as_list(genre)
    if genres:
        movies = movies.filter(genre__in=genres)
    movie_ids = movies.distinct("id")

    queryset = items.filter(movie__in=movie_ids)
    statuses = as_list(status)
    if statuses:
        queryset = queryset.filter(status__in=statuses)
    if priority:
        queryset = queryset.filter(priority=priority)
    queryset = queryset.order_by(*order_by(sort_by, sort_order, WATCHLIST_SORT_FIELDS, DEFAULT_SORT))
    return paginate(queryset, page, limit)


def watchlist_stats(user_id):
    """Status counts, rating/genre taste and watch time over active movies."""
    df = get_watchlist_df(user_id, active_only=True)
    if df.empty:
        return dict(EMPTY_STATS, favoriteGenres=[])

    result = dict(EMPTY_STATS)
    result["totalMovies"] = int(len(df))
    for status, count in df["status"].value_counts().items():
        if status in STATUS_KEYS:
            result[STATUS_KEYS[status]] = int(count)

    ratings = df["personal_rating"].astype("float64")
    ratings = ratings[ratings.notna() & (ratings != 0)]
    result["averagePersonalRating"] = round_half_up(float(ratings.mean()), 1) if not ratings.empty else 0

    genres = rank_by_frequency(df["genre"].explode(), FAVORITE_GENRES)
    result["favoriteGenres"] = genres.index.tolist()

    watched = df[df["status"] == "watched"]
    result["totalWatchTime"] = int(watched["duration"].fillna(0).sum())
    return result


def get_item(user_id, movie_id):
    item = WatchlistItem.objects(user=user_id, movie=movie_id).first()
    if item is None:
        raise NotFoundError("Movie not found in watchlist")
    return item


def find_item(user_id, movie_id):
    return WatchlistItem.objects(user=user_id, movie=movie_id).first()


def apply_update(item, changes, now=None):
    """Copy sent fields onto ``item``; status goes through set_status."""
    for name, value in changes.items():
        if name == "movie_id":
            continue
        if name == "status":
            if value is not None:
                item.set_status(value, now)
        elif name == "reminder":
            item.reminder = Reminder(**value) if value is not None else Reminder()
        elif name == "tags":
            item.tags = value or []
        else:
            setattr(item, name, value)
    return item


def add_item(user_id, payload):
    user = get_user(user_id)
    movie = get_movie(payload.movie_id)
    if find_item(user.pk, movie.pk) is not None:
        raise ConflictError("Movie is already in your watchlist")

    item = WatchlistItem(user=user, movie=movie)
    apply_update(item, payload.model_dump(exclude_none=True))
    try:
        item.save()
    except NotUniqueError:
        raise ConflictError("Movie is already in your watchlist")

    stats.refresh_user_stats(user.pk)
    return item


def update_item(user_id, movie_id, payload):
    item = get_item(user_id, movie_id)
    apply_update(item, payload.changes())
    item.save()
    stats.refresh_user_stats(user_id)
    return item


def remove_item(user_id, movie_id):
    item = get_item(user_id, movie_id)
    item.delete()
    stats.refresh_user_stats(user_id)


def bulk_update(user_id, payload):
    """Apply each entry to the matching item; unknown movies are skipped."""
    now = utcnow()
    updated = 0
    for entry in payload.items:
        item = find_item(user_id, entry.movie_id)
        if item is None:
            continue
        apply_update(item, entry.changes(), now)
        item.save()
        updated += 1
    if updated:
        stats.refresh_user_stats(user_id)
    return {"updatedCount": updated, "totalRequested": len(payload.items)}


def check_item(user_id, movie_id):
    item = find_item(user_id, movie_id)
    return {
        "inWatchlist": item is not None,
        "item": (
            {
                "status": item.status,
                "priority": item.priority,
                "dateAdded": item.date_added.isoformat() if item.date_added else None,
            }
            if item is not None
            else None
        ),
    }
