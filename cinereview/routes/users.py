from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query

from cinereview.models import User
from cinereview.routes.common import PageParams, SortOrder, ok
from cinereview.schemas import UserUpdatePayload
from cinereview.security import require_admin, require_owner_or_admin
from cinereview.services import reviews as review_service
from cinereview.services import users as user_service
from cinereview.utils.serializers import (
    serialize_reviews,
    serialize_user_private,
    serialize_user_public,
)
from cinereview.validation import parse_object_id, require_valid

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("")
def list_users(
    paging: dict = Depends(PageParams(default_limit=20)),
    search: Optional[str] = None,
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_order: SortOrder = Query("desc", alias="sortOrder"),
    admin: User = Depends(require_admin),
):
    users, pagination = user_service.list_users(
        search=search, sort_by=sort_by, sort_order=sort_order, **paging
    )
    return ok({"users": [serialize_user_private(u) for u in users], "pagination": pagination})


@router.get("/{user_id}")
def get_user(user_id: str):
    user, profile_stats, recent = user_service.get_profile(parse_object_id(user_id, "user id"))
    data = serialize_user_public(user)
    data["stats"] = profile_stats
    return ok({"user": data, "recentReviews": serialize_reviews(recent)})


@router.put("/{user_id}")
def update_user(user_id: str, body: dict = Body(...),
                current: User = Depends(require_owner_or_admin)):
    user_oid = parse_object_id(user_id, "user id")
    payload = require_valid(UserUpdatePayload, body)
    user = user_service.update_profile(user_oid, payload)
    return ok({"user": serialize_user_private(user)}, "Profile updated successfully")


@router.delete("/{user_id}")
def delete_user(user_id: str, current: User = Depends(require_owner_or_admin)):
    user_service.delete_account(parse_object_id(user_id, "user id"))
    return ok(message="Account deleted successfully")


@router.get("/{user_id}/reviews")
def user_reviews(
    user_id: str,
    paging: dict = Depends(PageParams()),
    rating: Optional[List[int]] = Query(None),
    sort_by: str = Query(review_service.DEFAULT_SORT, alias="sortBy"),
    sort_order: SortOrder = Query("desc", alias="sortOrder"),
):
    user = user_service.get_user(parse_object_id(user_id, "user id"))
    reviews, pagination = review_service.list_reviews(
        user=user.pk, rating=rating, sort_by=sort_by, sort_order=sort_order, **paging
    )
    return ok({
        "reviews": serialize_reviews(reviews),
        "user": {"_id": str(user.pk), "username": user.username},
        "pagination": pagination,
    })


@router.get("/{user_id}/stats")
def user_stats(user_id: str):
    return ok({"stats": user_service.user_review_stats(parse_object_id(user_id, "user id"))})
