from typing import List, Literal, Optional

from fastapi import Query

from cinereview.constants import GENRES, MAX_PAGE_SIZE
from cinereview.errors import ValidationError, envelope

SortOrder = Literal["asc", "desc"]


def ok(data=None, message=None):
    return envelope(True, message=message, data=data)


class PageParams:
    """page/limit query parameters shared by every list endpoint."""

    def __init__(self, default_limit=10):
        self.default_limit = default_limit

    def __call__(
        self,
        page: int = Query(1, ge=1),
        limit: Optional[int] = Query(None, ge=1, le=MAX_PAGE_SIZE),
    ):
        return {"page": page, "limit": limit or self.default_limit}


def check_genres(genres: Optional[List[str]]):
    if not genres:
        return None
    invalid = [g for g in genres if g not in GENRES]
    if invalid:
        raise ValidationError("Validation errors", [
            {"field": "genre", "message": "Invalid genre", "value": invalid}
        ])
    return genres
