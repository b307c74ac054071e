import logging

from cinereview.constants import ACTIVE, DELETED, MOVIE_SORT_FIELDS
from cinereview.errors import ConflictError, NotFoundError
from cinereview.models import CastMember, ExternalRatings, Movie
from cinereview.queries import build_movie_query, order_by, paginate, text_search_clause
from cinereview.utils.numbers import round_half_up

logger = logging.getLogger(__name__)

DEFAULT_SORT = "createdAt"
SUMMARY_LIMIT = 5


def list_movies(filters, page=1, limit=12, sort_by=DEFAULT_SORT, sort_order="desc"):
    """One page of the catalog matching ``filters`` (see build_movie_query)."""
    query = build_movie_query(**filters)
    queryset = Movie.objects(__raw__=query).order_by(
        *order_by(sort_by, sort_order, MOVIE_SORT_FIELDS, DEFAULT_SORT)
    )
    return paginate(queryset, page, limit)


def get_movie(movie_id, include_deleted=False):
    queryset = Movie.objects(id=movie_id)
    if not include_deleted:
        queryset = queryset.active()
    movie = queryset.first()
    if movie is None:
        raise NotFoundError("Movie not found")
    return movie


def _ensure_unique_title(title, release_year, exclude_id=None):
    queryset = Movie.objects.active().filter(title__iexact=title, release_year=release_year)
    if exclude_id is not None:
        queryset = queryset.filter(id__ne=exclude_id)
    if queryset.first() is not None:
        raise ConflictError("A movie with this title and release year already exists")


def _apply_fields(movie, values):
    for name, value in values.items():
        if name == "cast":
            movie.cast = [CastMember(**member) for member in value or []]
        elif name == "external_ratings":
            movie.external_ratings = ExternalRatings(**(value or {}))
        else:
            setattr(movie, name, value)


def create_movie(payload, added_by):
    _ensure_unique_title(payload.title, payload.release_year)
    movie = Movie(added_by=added_by)
    _apply_fields(movie, payload.model_dump(exclude_none=True))
    movie.save()
    logger.info("Movie %s (%s) added by %s", movie.title, movie.release_year, added_by.username)
    return movie


def update_movie(movie_id, payload):
    movie = get_movie(movie_id)
    changes = payload.changes()
    if "title" in changes or "release_year" in changes:
        _ensure_unique_title(
            changes.get("title") or movie.title,
            changes.get("release_year") or movie.release_year,
            exclude_id=movie.pk,
        )
    _apply_fields(movie, changes)
    movie.save()
    return movie


def delete_movie(movie_id):
    movie = get_movie(movie_id)
    movie.status = DELETED
    movie.save()
    logger.info("Movie %s soft-deleted", movie.pk)
    return movie


def search_movies(term, limit=10):
    query = {"status": ACTIVE}
    query.update(text_search_clause(term))
    return list(
        Movie.objects(__raw__=query)
        .order_by("-average_rating", "-total_reviews", "+id")
        .limit(limit)
    )


def catalog_stats():
    """Overview numbers plus top/most-reviewed/recent lists over active movies."""
    pipeline = [
        {"$group": {
            "_id": None,
            "totalMovies": {"$sum": 1},
            "averageRating": {"$avg": "$average_rating"},
            "totalReviews": {"$sum": "$total_reviews"},
            "minYear": {"$min": "$release_year"},
            "maxYear": {"$max": "$release_year"},
        }}
    ]
    active = Movie.objects.active()
    stats = list(active.aggregate(pipeline))
    if stats:
        stat = stats[0]
        overview = {
            "totalMovies": stat["totalMovies"],
            "averageRating": round_half_up(stat["averageRating"], 1),
            "totalReviews": stat["totalReviews"],
            "yearRange": {"min": stat["minYear"], "max": stat["maxYear"]},
        }
    else:
        overview = {"totalMovies": 0, "averageRating": 0, "totalReviews": 0,
                    "yearRange": {"min": None, "max": None}}

    genre_count = {}
    for movie in active.only("genre"):
        for genre in movie.genre or []:
            genre_count[genre] = genre_count.get(genre, 0) + 1

    return {
        "overview": overview,
        "genreDistribution": genre_count,
        "topRatedMovies": list(active.order_by("-average_rating", "-total_reviews").limit(SUMMARY_LIMIT)),
        "mostReviewedMovies": list(active.order_by("-total_reviews", "-average_rating").limit(SUMMARY_LIMIT)),
        "recentMovies": list(active.order_by("-created_at").limit(SUMMARY_LIMIT)),
    }
