"""Derived statistics kept on Movie and User documents.

The review service calls ``refresh_review_aggregates`` after every review
write. Recomputing is idempotent, so a failed or skipped refresh is repaired
by the next one; it never undoes the review write that triggered it.
"""

import logging

from cinereview.constants import ACTIVE
from cinereview.models import Movie, Review, User, WatchlistItem, empty_distribution, utcnow
from cinereview.utils.numbers import round_half_up

logger = logging.getLogger(__name__)


def _rating_pipeline():
    return [
        {"$group": {
            "_id": None,
            "avgRating": {"$avg": "$rating"},
            "reviewCount": {"$sum": 1},
            "ratings": {"$push": "$rating"},
        }}
    ]


def distribution_of(ratings):
    distribution = empty_distribution()
    for rating in ratings:
        key = str(int(rating))
        if key in distribution:
            distribution[key] += 1
    return distribution


def review_statistics(**match):
    """Fresh statistics over the active reviews matching ``match``.

    Returns ``averageRating`` unrounded, ``totalReviews`` and
    ``ratingDistribution``.
    """
    queryset = Review.objects(status=ACTIVE, **match)
    stats = list(queryset.aggregate(_rating_pipeline()))
    if not stats:
        return {"averageRating": 0, "totalReviews": 0, "ratingDistribution": empty_distribution()}
    stat = stats[0]
    return {
        "averageRating": stat["avgRating"] or 0,
        "totalReviews": stat["reviewCount"],
        "ratingDistribution": distribution_of(stat["ratings"]),
    }


def recompute_movie_stats(movie_id):
    stats = review_statistics(movie=movie_id)
    average = round_half_up(stats["averageRating"], 1) if stats["totalReviews"] else 0
    Movie.objects(id=movie_id).update_one(
        set__average_rating=average,
        set__total_reviews=stats["totalReviews"],
        set__rating_distribution=stats["ratingDistribution"],
        set__updated_at=utcnow(),
    )
    return {
        "averageRating": average,
        "totalReviews": stats["totalReviews"],
        "ratingDistribution": stats["ratingDistribution"],
    }


def recompute_user_stats(user_id):
    ratings = [r.rating for r in Review.objects(user=user_id, status=ACTIVE).only("rating")]
    total = len(ratings)
    average = round_half_up(sum(ratings) / total, 1) if total else 0
    watched = WatchlistItem.objects(user=user_id, status="watched").count()
    User.objects(id=user_id).update_one(
        set__stats__total_reviews=total,
        set__stats__average_rating=average,
        set__stats__movies_watched=watched,
        set__updated_at=utcnow(),
    )
    return {"totalReviews": total, "averageRating": average, "moviesWatched": watched}


def refresh_review_aggregates(movie_id, user_id):
    """Bring movie and user statistics back in line after a review write.

    Failures are logged and swallowed.
    """
    try:
        recompute_movie_stats(movie_id)
    except Exception:
        logger.exception("Error updating statistics for movie %s", movie_id)
    try:
        recompute_user_stats(user_id)
    except Exception:
        logger.exception("Error updating statistics for user %s", user_id)


def refresh_user_stats(user_id):
    try:
        recompute_user_stats(user_id)
    except Exception:
        logger.exception("Error updating statistics for user %s", user_id)


def refresh_movies(movie_ids):
    for movie_id in set(movie_ids):
        try:
            recompute_movie_stats(movie_id)
        except Exception:
            logger.exception("Error updating statistics for movie %s", movie_id)
