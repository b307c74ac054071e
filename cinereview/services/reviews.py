"""Review writes and the statistics refresh that follows each of them."""

import logging

from mongoengine.errors import NotUniqueError

from cinereview import stats
from cinereview.constants import ACTIVE, DELETED, REVIEW_SORT_FIELDS
from cinereview.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from cinereview.models import Review, reference_id, utcnow
from cinereview.queries import as_list, order_by, paginate
from cinereview.security import is_owner_or_admin
from cinereview.services.movies import get_movie

logger = logging.getLogger(__name__)

DEFAULT_SORT = "createdAt"


def list_reviews(page=1, limit=10, sort_by=DEFAULT_SORT, sort_order="desc", rating=None, **match):
    """Active reviews matching ``match`` (movie=..., user=...), paginated."""
    queryset = Review.objects(status=ACTIVE, **match)
    ratings = as_list(rating)
    if ratings:
        queryset = queryset.filter(rating__in=ratings)
    queryset = queryset.order_by(*order_by(sort_by, sort_order, REVIEW_SORT_FIELDS, DEFAULT_SORT))
    return paginate(queryset, page, limit)


def list_movie_reviews(movie_id, **options):
    movie = get_movie(movie_id)
    reviews, pagination = list_reviews(movie=movie.pk, **options)
    statistics = stats.review_statistics(movie=movie.pk)
    return movie, reviews, statistics, pagination


def get_review(movie_id, review_id):
    review = Review.objects(id=review_id, movie=movie_id, status=ACTIVE).first()
    if review is None:
        raise NotFoundError("Review not found")
    return review


def get_my_review(user, movie_id):
    review = Review.objects(user=user.pk, movie=movie_id, status=ACTIVE).first()
    if review is None:
        raise NotFoundError("You have not reviewed this movie")
    return review


def create_review(user, movie_id, payload):
    movie = get_movie(movie_id)
    if Review.objects(user=user.pk, movie=movie.pk, status=ACTIVE).first() is not None:
        raise ConflictError("You have already reviewed this movie")

    review = Review(user=user, movie=movie, **payload.model_dump())
    try:
        review.save()
    except NotUniqueError:
        # a concurrent request won the race for this (user, movie) pair
        raise ConflictError("You have already reviewed this movie")

    stats.refresh_review_aggregates(movie.pk, user.pk)
    logger.info("Review %s created by %s for movie %s", review.pk, user.pk, movie.pk)
    return review


def _owned_review(user, movie_id, review_id, action):
    review = get_review(movie_id, review_id)
    if not is_owner_or_admin(user, reference_id(review, "user")):
        raise AuthorizationError(f"Not authorized to {action} this review")
    return review


def update_review(user, movie_id, review_id, payload):
    review = _owned_review(user, movie_id, review_id, "update")
    for name, value in payload.changes().items():
        if value is not None:
            setattr(review, name, value)
    review.is_edited = True
    review.edited_at = utcnow()
    review.save()

    stats.refresh_review_aggregates(reference_id(review, "movie"), reference_id(review, "user"))
    return review


def delete_review(user, movie_id, review_id):
    review = _owned_review(user, movie_id, review_id, "delete")
    review.status = DELETED
    review.save()

    stats.refresh_review_aggregates(reference_id(review, "movie"), reference_id(review, "user"))
    logger.info("Review %s soft-deleted by %s", review.pk, user.pk)
    return review


def mark_helpful(user, movie_id, review_id, is_helpful=True):
    review = get_review(movie_id, review_id)
    if str(reference_id(review, "user")) == str(user.pk):
        raise ValidationError("You cannot mark your own review as helpful")

    if is_helpful:
        Review.objects(id=review.pk).update_one(inc__helpful_votes=1, inc__total_votes=1)
    else:
        Review.objects(id=review.pk).update_one(inc__total_votes=1)
    review.reload()
    return review
