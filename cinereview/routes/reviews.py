from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query

from cinereview.models import User
from cinereview.routes.common import PageParams, SortOrder, ok
from cinereview.schemas import HelpfulVotePayload, ReviewCreatePayload, ReviewUpdatePayload
from cinereview.security import get_current_user
from cinereview.services import reviews as review_service
from cinereview.utils.numbers import round_half_up
from cinereview.utils.serializers import serialize_review, serialize_reviews
from cinereview.validation import parse_object_id, require_valid

router = APIRouter(prefix="/api/movies/{movie_id}/reviews", tags=["reviews"])


@router.get("")
def list_reviews(
    movie_id: str,
    paging: dict = Depends(PageParams()),
    rating: Optional[List[int]] = Query(None),
    sort_by: str = Query(review_service.DEFAULT_SORT, alias="sortBy"),
    sort_order: SortOrder = Query("desc", alias="sortOrder"),
):
    movie, reviews, statistics, pagination = review_service.list_movie_reviews(
        parse_object_id(movie_id, "movie id"),
        rating=rating,
        sort_by=sort_by,
        sort_order=sort_order,
        **paging,
    )
    return ok({
        "reviews": serialize_reviews(reviews),
        "movieInfo": {
            "_id": str(movie.pk),
            "title": movie.title,
            "averageRating": movie.average_rating,
            "totalReviews": movie.total_reviews,
        },
        "statistics": {
            "averageRating": round_half_up(statistics["averageRating"], 1),
            "totalReviews": statistics["totalReviews"],
            "ratingDistribution": statistics["ratingDistribution"],
        },
        "pagination": pagination,
    })


@router.post("", status_code=201)
def create_review(movie_id: str, body: dict = Body(...), user: User = Depends(get_current_user)):
    movie_oid = parse_object_id(movie_id, "movie id")
    payload = require_valid(ReviewCreatePayload, body)
    review = review_service.create_review(user, movie_oid, payload)
    return ok({"review": serialize_review(review)}, "Review created successfully")


@router.get("/my-review")
def my_review(movie_id: str, user: User = Depends(get_current_user)):
    review = review_service.get_my_review(user, parse_object_id(movie_id, "movie id"))
    return ok({"review": serialize_review(review)})


@router.get("/{review_id}")
def get_review(movie_id: str, review_id: str):
    review = review_service.get_review(
        parse_object_id(movie_id, "movie id"), parse_object_id(review_id, "review id")
    )
    return ok({"review": serialize_review(review)})


@router.put("/{review_id}")
def update_review(movie_id: str, review_id: str, body: dict = Body(...),
                  user: User = Depends(get_current_user)):
    movie_oid = parse_object_id(movie_id, "movie id")
    review_oid = parse_object_id(review_id, "review id")
    payload = require_valid(ReviewUpdatePayload, body)
    review = review_service.update_review(user, movie_oid, review_oid, payload)
    return ok({"review": serialize_review(review)}, "Review updated successfully")


@router.delete("/{review_id}")
def delete_review(movie_id: str, review_id: str, user: User = Depends(get_current_user)):
    review_service.delete_review(
        user, parse_object_id(movie_id, "movie id"), parse_object_id(review_id, "review id")
    )
    return ok(message="Review deleted successfully")


@router.post("/{review_id}/helpful")
def mark_helpful(movie_id: str, review_id: str, body: Optional[dict] = Body(None),
                 user: User = Depends(get_current_user)):
    movie_oid = parse_object_id(movie_id, "movie id")
    review_oid = parse_object_id(review_id, "review id")
    payload = require_valid(HelpfulVotePayload, body or {})
    review = review_service.mark_helpful(user, movie_oid, review_oid, payload.is_helpful)
    return ok(
        {
            "helpfulVotes": review.helpful_votes,
            "totalVotes": review.total_votes,
            "helpfulnessRatio": review.helpfulness_ratio,
        },
        "Vote recorded successfully",
    )
