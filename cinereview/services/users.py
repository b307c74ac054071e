import logging
import re

from cinereview import stats
from cinereview.constants import ACTIVE, DELETED, USER_SORT_FIELDS
from cinereview.errors import ConflictError, NotFoundError
from cinereview.models import Review, User, WatchlistItem, reference_id, utcnow
from cinereview.queries import order_by, paginate
from cinereview.utils.mongo_data_loader import get_user_reviews_df, rank_by_frequency
from cinereview.utils.numbers import round_half_up

logger = logging.getLogger(__name__)

RECENT_REVIEWS = 5
FAVORITE_GENRES = 5


def get_user(user_id):
    user = User.objects(id=user_id).first()
    if user is None:
        raise NotFoundError("User not found")
    return user


def recent_reviews(user_id, limit=RECENT_REVIEWS):
    return list(Review.objects(user=user_id, status=ACTIVE).order_by("-created_at").limit(limit))


def get_profile(user_id):
    """Public profile plus recent reviews and fresh rating figures."""
    user = get_user(user_id)
    fresh = stats.review_statistics(user=user.pk)
    profile_stats = {
        "totalReviews": fresh["totalReviews"],
        "averageRating": round_half_up(fresh["averageRating"], 1) if fresh["totalReviews"] else 0,
        "moviesWatched": user.stats.movies_watched if user.stats else 0,
        "ratingDistribution": fresh["ratingDistribution"],
    }
    return user, profile_stats, recent_reviews(user.pk)


def ensure_available(username=None, email=None, exclude_id=None):
    if username:
        taken = User.objects(username=username)
        if exclude_id is not None:
            taken = taken.filter(id__ne=exclude_id)
        if taken.first() is not None:
            raise ConflictError("Username is already taken")
    if email:
        taken = User.objects(email=email)
        if exclude_id is not None:
            taken = taken.filter(id__ne=exclude_id)
        if taken.first() is not None:
            raise ConflictError("Email is already registered")


def update_profile(user_id, payload):
    user = get_user(user_id)
    changes = {k: v for k, v in payload.changes().items() if v is not None}
    ensure_available(changes.get("username"), changes.get("email"), exclude_id=user.pk)
    for name, value in changes.items():
        setattr(user, name, value)
    user.save()
    return user


def list_users(page=1, limit=20, sort_by="createdAt", sort_order="desc", search=None):
    queryset = User.objects
    if search and search.strip():
        pattern = {"$regex": re.escape(search.strip()), "$options": "i"}
        queryset = User.objects(__raw__={"$or": [{"username": pattern}, {"email": pattern}]})
    queryset = queryset.order_by(*order_by(sort_by, sort_order, USER_SORT_FIELDS, "createdAt"))
    return paginate(queryset, page, limit)


def user_review_stats(user_id):
    """Detailed review statistics for a user's profile page."""
    get_user(user_id)
    reviews = get_user_reviews_df(user_id)
    result = {
        "totalReviews": 0,
        "averageRating": 0,
        "ratingDistribution": stats.distribution_of([]),
        "favoriteGenres": [],
        "reviewsByDecade": {},
        "helpfulnessRatio": 0,
        "totalHelpfulVotes": 0,
    }
    if reviews.empty:
        return result

    total_helpful = int(reviews["helpful_votes"].sum())
    total_votes = int(reviews["total_votes"].sum())
    genres = rank_by_frequency(reviews["genre"].explode(), FAVORITE_GENRES)
    decades = (reviews["release_year"].dropna().astype(int) // 10 * 10).astype(str) + "s"

    result.update({
        "totalReviews": int(len(reviews)),
        "averageRating": round_half_up(float(reviews["rating"].mean()), 1),
        "ratingDistribution": stats.distribution_of(reviews["rating"].tolist()),
        "favoriteGenres": [{"genre": g, "count": int(c)} for g, c in genres.items()],
        "reviewsByDecade": {k: int(v) for k, v in decades.value_counts(sort=False).items()},
        "helpfulnessRatio": int(total_helpful / total_votes * 100 + 0.5) if total_votes else 0,
        "totalHelpfulVotes": total_helpful,
    })
    return result


def delete_account(user_id):
    """Remove the user, retire their reviews and drop their watchlist."""
    user = get_user(user_id)
    reviews = Review.objects(user=user.pk, status=ACTIVE)
    movie_ids = [reference_id(r, "movie") for r in reviews.only("movie")]
    reviews.update(set__status=DELETED, set__updated_at=utcnow())
    WatchlistItem.objects(user=user.pk).delete()
    user.delete()

    stats.refresh_movies(movie_ids)
    logger.info("Account %s deleted; %d reviews retired", user_id, len(movie_ids))
