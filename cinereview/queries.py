"""Filter builders and offset pagination shared by the list endpoints."""

import math
import re

from cinereview.constants import ACTIVE
from cinereview.errors import ValidationError


def pagination_meta(page, limit, total):
    pages = math.ceil(total / limit) if limit else 0
    return {
        "current": page,
        "pages": pages,
        "total": total,
        "limit": limit,
        "hasNext": page < pages,
        "hasPrev": page > 1,
    }


def paginate(queryset, page, limit):
    """Return one page of ``queryset`` and its pagination block.

    The count runs against the same filtered queryset as the page.
    """
    total = queryset.count()
    items = list(queryset.skip((page - 1) * limit).limit(limit))
    return items, pagination_meta(page, limit, total)


def order_by(sort_by, sort_order, allowed, default):
    """Translate an API sortBy/sortOrder pair into mongoengine order keys.

    ``id`` is appended in the same direction so equal sort values keep a
    stable order across pages.
    """
    sort_by = sort_by or default
    if sort_by not in allowed:
        raise ValidationError("Validation errors", [
            {"field": "sortBy", "message": "Invalid sort field", "value": sort_by}
        ])
    prefix = "-" if sort_order == "desc" else "+"
    return f"{prefix}{allowed[sort_by]}", f"{prefix}id"


def _icontains(term):
    return {"$regex": re.escape(term), "$options": "i"}


def text_search_clause(term):
    """Case-insensitive substring match across title, director, cast and genre."""
    pattern = _icontains(term)
    return {"$or": [
        {"title": pattern},
        {"director": pattern},
        {"cast.name": pattern},
        {"genre": pattern},
    ]}


def as_list(value):
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return [v for v in value if v not in (None, "")] or None
    return [value]


def build_movie_query(
    genre=None,
    release_year=None,
    release_year_min=None,
    release_year_max=None,
    director=None,
    min_rating=None,
    max_rating=None,
    search=None,
    include_deleted=False,
):
    """Raw MongoDB filter for the movie catalog.

    Only active movies match unless ``include_deleted`` is set.
    """
    query = {} if include_deleted else {"status": ACTIVE}

    genres = as_list(genre)
    if genres:
        query["genre"] = {"$in": genres}

    if release_year is not None:
        query["release_year"] = release_year
    else:
        year_range = {}
        if release_year_min is not None:
            year_range["$gte"] = release_year_min
        if release_year_max is not None:
            year_range["$lte"] = release_year_max
        if year_range:
            query["release_year"] = year_range

    if director:
        query["director"] = _icontains(director)

    rating_range = {}
    if min_rating is not None:
        rating_range["$gte"] = min_rating
    if max_rating is not None:
        rating_range["$lte"] = max_rating
    if rating_range:
        query["average_rating"] = rating_range

    if search and search.strip():
        query.update(text_search_clause(search.strip()))

    return query
