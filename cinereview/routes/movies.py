from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query

from cinereview.constants import MIN_RELEASE_YEAR
from cinereview.errors import ValidationError
from cinereview.models import User
from cinereview.routes.common import PageParams, SortOrder, check_genres, ok
from cinereview.schemas import MovieCreatePayload, MovieUpdatePayload
from cinereview.security import require_admin
from cinereview.services import movies as movie_service
from cinereview.utils.serializers import serialize_movie, serialize_movie_summary, serialize_movies
from cinereview.validation import parse_object_id, require_valid

router = APIRouter(prefix="/api/movies", tags=["movies"])


@router.get("")
def list_movies(
    paging: dict = Depends(PageParams(default_limit=12)),
    genre: Optional[List[str]] = Query(None),
    release_year: Optional[int] = Query(None, alias="releaseYear", ge=MIN_RELEASE_YEAR),
    release_year_min: Optional[int] = Query(None, alias="releaseYearMin", ge=MIN_RELEASE_YEAR),
    release_year_max: Optional[int] = Query(None, alias="releaseYearMax", ge=MIN_RELEASE_YEAR),
    director: Optional[str] = None,
    min_rating: Optional[float] = Query(None, alias="minRating", ge=0, le=5),
    max_rating: Optional[float] = Query(None, alias="maxRating", ge=0, le=5),
    search: Optional[str] = None,
    sort_by: str = Query(movie_service.DEFAULT_SORT, alias="sortBy"),
    sort_order: SortOrder = Query("desc", alias="sortOrder"),
):
    filters = {
        "genre": check_genres(genre),
        "release_year": release_year,
        "release_year_min": release_year_min,
        "release_year_max": release_year_max,
        "director": director,
        "min_rating": min_rating,
        "max_rating": max_rating,
        "search": search,
    }
    movies, pagination = movie_service.list_movies(
        filters, sort_by=sort_by, sort_order=sort_order, **paging
    )
    return ok({"movies": serialize_movies(movies), "pagination": pagination})


@router.get("/stats")
def movie_stats():
    stats = movie_service.catalog_stats()
    for key in ("topRatedMovies", "mostReviewedMovies", "recentMovies"):
        stats[key] = [serialize_movie_summary(m) for m in stats[key]]
    return ok(stats)


@router.get("/search")
def search_movies(
    q: Optional[str] = None,
    limit: int = Query(10, ge=1, le=100),
):
    if not q or not q.strip():
        raise ValidationError("Search query is required", [
            {"field": "q", "message": "Search query is required", "value": q}
        ])
    movies = movie_service.search_movies(q.strip(), limit)
    return ok({
        "movies": [serialize_movie_summary(m) for m in movies],
        "query": q.strip(),
        "total": len(movies),
    })


@router.get("/{movie_id}")
def get_movie(movie_id: str):
    movie = movie_service.get_movie(parse_object_id(movie_id, "id"))
    return ok({"movie": serialize_movies([movie])[0]})


@router.post("", status_code=201)
def create_movie(body: dict = Body(...), admin: User = Depends(require_admin)):
    payload = require_valid(MovieCreatePayload, body)
    movie = movie_service.create_movie(payload, admin)
    return ok({"movie": serialize_movie(movie, added_by=admin)}, "Movie created successfully")


@router.put("/{movie_id}")
def update_movie(movie_id: str, body: dict = Body(...), admin: User = Depends(require_admin)):
    movie_oid = parse_object_id(movie_id, "id")
    payload = require_valid(MovieUpdatePayload, body)
    movie = movie_service.update_movie(movie_oid, payload)
    return ok({"movie": serialize_movies([movie])[0]}, "Movie updated successfully")


@router.delete("/{movie_id}")
def delete_movie(movie_id: str, admin: User = Depends(require_admin)):
    movie_service.delete_movie(parse_object_id(movie_id, "id"))
    return ok(message="Movie deleted successfully")
