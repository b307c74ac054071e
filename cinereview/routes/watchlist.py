from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query

from cinereview.constants import PRIORITIES, WATCHLIST_STATUSES
from cinereview.errors import ValidationError
from cinereview.models import User
from cinereview.recommendation_model import recommend_for_user
from cinereview.routes.common import PageParams, SortOrder, check_genres, ok
from cinereview.schemas import BulkWatchlistPayload, WatchlistAddPayload, WatchlistUpdatePayload
from cinereview.security import require_owner_or_admin
from cinereview.services import watchlist as watchlist_service
from cinereview.utils.serializers import serialize_movie_summary, serialize_watchlist_item, serialize_watchlist_items
from cinereview.validation import parse_object_id, require_valid

router = APIRouter(
    prefix="/api/users/{user_id}/watchlist",
    tags=["watchlist"],
    dependencies=[Depends(require_owner_or_admin)],
)


def _check_choices(field, values, allowed):
    invalid = [v for v in values or [] if v not in allowed]
    if invalid:
        raise ValidationError("Validation errors", [
            {"field": field, "message": f"Invalid {field}", "value": invalid}
        ])
    return values


@router.get("")
def list_watchlist(
    user_id: str,
    paging: dict = Depends(PageParams(default_limit=20)),
    status: Optional[List[str]] = Query(None),
    priority: Optional[str] = None,
    genre: Optional[List[str]] = Query(None),
    sort_by: str = Query(watchlist_service.DEFAULT_SORT, alias="sortBy"),
    sort_order: SortOrder = Query("desc", alias="sortOrder"),
):
    user_oid = parse_object_id(user_id, "user id")
    _check_choices("status", status, WATCHLIST_STATUSES)
    if priority:
        _check_choices("priority", [priority], PRIORITIES)
    items, pagination = watchlist_service.list_watchlist(
        user_oid,
        status=status,
        priority=priority,
        genre=check_genres(genre),
        sort_by=sort_by,
        sort_order=sort_order,
        **paging,
    )
    return ok({
        "watchlist": serialize_watchlist_items(items),
        "statistics": watchlist_service.watchlist_stats(user_oid),
        "pagination": pagination,
    })


@router.post("", status_code=201)
def add_to_watchlist(user_id: str, body: dict = Body(...)):
    user_oid = parse_object_id(user_id, "user id")
    payload = require_valid(WatchlistAddPayload, body)
    item = watchlist_service.add_item(user_oid, payload)
    return ok({"watchlistItem": serialize_watchlist_item(item)}, "Movie added to watchlist")


@router.get("/stats")
def watchlist_stats(user_id: str):
    return ok({"stats": watchlist_service.watchlist_stats(parse_object_id(user_id, "user id"))})


@router.get("/recommendations")
def recommendations(user_id: str, limit: int = Query(10, ge=1, le=50)):
    result = recommend_for_user(parse_object_id(user_id, "user id"), limit)
    data = {
        "recommendations": [serialize_movie_summary(m) for m in result["recommendations"]],
        "basedOn": result["basedOn"],
    }
    return ok(data, result["message"])


@router.patch("/bulk")
def bulk_update(user_id: str, body: dict = Body(...)):
    user_oid = parse_object_id(user_id, "user id")
    payload = require_valid(BulkWatchlistPayload, body)
    result = watchlist_service.bulk_update(user_oid, payload)
    return ok(result, f"{result['updatedCount']} items updated successfully")


@router.get("/check/{movie_id}")
def check_movie(user_id: str, movie_id: str):
    result = watchlist_service.check_item(
        parse_object_id(user_id, "user id"), parse_object_id(movie_id, "movie id")
    )
    return ok(result)


@router.get("/{movie_id}")
def get_item(user_id: str, movie_id: str):
    item = watchlist_service.get_item(
        parse_object_id(user_id, "user id"), parse_object_id(movie_id, "movie id")
    )
    return ok({"watchlistItem": serialize_watchlist_item(item)})


@router.put("/{movie_id}")
def update_item(user_id: str, movie_id: str, body: dict = Body(...)):
    user_oid = parse_object_id(user_id, "user id")
    movie_oid = parse_object_id(movie_id, "movie id")
    payload = require_valid(WatchlistUpdatePayload, body)
    item = watchlist_service.update_item(user_oid, movie_oid, payload)
    return ok({"watchlistItem": serialize_watchlist_item(item)}, "Watchlist item updated")


@router.delete("/{movie_id}")
def remove_item(user_id: str, movie_id: str):
    watchlist_service.remove_item(
        parse_object_id(user_id, "user id"), parse_object_id(movie_id, "movie id")
    )
    return ok(message="Movie removed from watchlist")
