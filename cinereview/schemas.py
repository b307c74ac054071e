"""Typed request payloads.

Each write endpoint validates its JSON body against one of these models
(see ``cinereview.validation``). Field names are snake_case in Python and
camelCase on the wire.
"""

import re
from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import (
    AfterValidator, AliasChoices, BaseModel, ConfigDict, Field, StringConstraints, field_validator
)
from pydantic.alias_generators import to_camel

from cinereview.constants import GENRES, MIN_RELEASE_YEAR, PRIORITIES, WATCHLIST_STATUSES

EMAIL_RE = re.compile(r"^[\w.+-]+@[\w-]+(\.[\w-]+)*\.[A-Za-z]{2,}$")
USERNAME_RE = re.compile(r"^[A-Za-z0-9 _-]+$")
POSTER_URL_RE = re.compile(r"^https?://.+\.(jpg|jpeg|png|webp|gif)$", re.IGNORECASE)
TRAILER_URL_RE = re.compile(r"^https?://(www\.)?(youtube\.com|youtu\.be)/.+")
OBJECT_ID_RE = re.compile(r"^[0-9a-fA-F]{24}$")


def max_release_year():
    return datetime.now().year + 2


def _check_email(value):
    value = value.lower()
    if not EMAIL_RE.match(value):
        raise ValueError("Please provide a valid email")
    return value


def _check_username(value):
    if not USERNAME_RE.match(value):
        raise ValueError("Username can only contain letters, numbers, spaces, underscores, and hyphens")
    return value


def _check_genres(values):
    invalid = [g for g in values if g not in GENRES]
    if invalid:
        raise ValueError(f"Invalid genre: {', '.join(invalid)}")
    # genres are a set; repeats keep their first position
    return list(dict.fromkeys(values))


def _check_release_year(value):
    if not MIN_RELEASE_YEAR <= value <= max_release_year():
        raise ValueError(
            f"Release year must be between {MIN_RELEASE_YEAR} and {max_release_year()}"
        )
    return value


def _check_poster_url(value):
    if not POSTER_URL_RE.match(value):
        raise ValueError("Poster URL must be a valid image URL")
    return value


def _check_trailer_url(value):
    if value and not TRAILER_URL_RE.match(value):
        raise ValueError("Please provide a valid YouTube URL")
    return value or None


def _check_object_id(value):
    if not OBJECT_ID_RE.match(value):
        raise ValueError("Invalid movieId")
    return value


def _check_tags(values):
    if any(len(tag) > 50 for tag in values):
        raise ValueError("Each tag cannot exceed 50 characters")
    return values


def _choice(choices, label):
    def check(value):
        if value not in choices:
            raise ValueError(f"Invalid {label}")
        return value
    return AfterValidator(check)


Email = Annotated[str, StringConstraints(strip_whitespace=True), AfterValidator(_check_email)]
Username = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=3, max_length=30), AfterValidator(_check_username)
]
GenreList = Annotated[List[str], Field(min_length=1), AfterValidator(_check_genres)]
ReleaseYear = Annotated[int, AfterValidator(_check_release_year)]
PosterUrl = Annotated[str, AfterValidator(_check_poster_url)]
TrailerUrl = Annotated[str, AfterValidator(_check_trailer_url)]
ObjectIdStr = Annotated[str, AfterValidator(_check_object_id)]
WatchStatus = Annotated[str, _choice(WATCHLIST_STATUSES, "status")]
Priority = Annotated[str, _choice(PRIORITIES, "priority")]
TagList = Annotated[List[str], AfterValidator(_check_tags)]


class Payload(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )

    def changes(self):
        """Fields the client actually sent, keyed by attribute name."""
        return self.model_dump(exclude_unset=True)


class CredentialsPayload(Payload):
    """Payloads carrying passwords, which are taken exactly as typed."""

    model_config = ConfigDict(str_strip_whitespace=False)


# --- auth / users ---

class RegisterPayload(CredentialsPayload):
    username: Username = Field(validation_alias=AliasChoices("username", "name"))
    email: Email
    password: str = Field(min_length=6)
    confirm_password: str

    @field_validator("confirm_password")
    @classmethod
    def passwords_match(cls, value, info):
        if value != info.data.get("password"):
            raise ValueError("Passwords do not match")
        return value


class LoginPayload(CredentialsPayload):
    email: Email
    password: str = Field(min_length=1)


class PasswordChangePayload(CredentialsPayload):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6)


class UserUpdatePayload(Payload):
    username: Optional[Username] = None
    email: Optional[Email] = None
    bio: Optional[str] = Field(default=None, max_length=500)
    favorite_genres: Optional[List[str]] = None
    profile_picture: Optional[str] = None

    @field_validator("favorite_genres")
    @classmethod
    def known_genres(cls, values):
        return values if values is None else _check_genres(values)


# --- movies ---

class CastMemberPayload(Payload):
    name: str = Field(min_length=1)
    role: str = ""


class ExternalRatingsPayload(Payload):
    imdb_rating: Optional[float] = Field(default=None, ge=0, le=10)
    rotten_tomatoes_rating: Optional[float] = Field(default=None, ge=0, le=100)


class MovieCreatePayload(Payload):
    title: str = Field(min_length=1, max_length=200)
    genre: GenreList
    release_year: ReleaseYear
    director: str = Field(min_length=1, max_length=100)
    cast: List[CastMemberPayload] = Field(default_factory=list)
    synopsis: str = Field(min_length=1, max_length=2000)
    poster_url: PosterUrl
    trailer_url: Optional[TrailerUrl] = None
    duration: int = Field(ge=1)
    language: str = Field(min_length=1)
    country: str = Field(min_length=1)
    budget: Optional[int] = Field(default=None, ge=0)
    box_office: Optional[int] = Field(default=None, ge=0)
    external_ratings: Optional[ExternalRatingsPayload] = Field(
        default=None, validation_alias=AliasChoices("externalRatings", "rating"),
    )


class MovieUpdatePayload(Payload):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    genre: Optional[GenreList] = None
    release_year: Optional[ReleaseYear] = None
    director: Optional[str] = Field(default=None, min_length=1, max_length=100)
    cast: Optional[List[CastMemberPayload]] = None
    synopsis: Optional[str] = Field(default=None, min_length=1, max_length=2000)
    poster_url: Optional[PosterUrl] = None
    trailer_url: Optional[TrailerUrl] = None
    duration: Optional[int] = Field(default=None, ge=1)
    language: Optional[str] = Field(default=None, min_length=1)
    country: Optional[str] = Field(default=None, min_length=1)
    budget: Optional[int] = Field(default=None, ge=0)
    box_office: Optional[int] = Field(default=None, ge=0)
    external_ratings: Optional[ExternalRatingsPayload] = Field(
        default=None, validation_alias=AliasChoices("externalRatings", "rating"),
    )


# --- reviews ---

class ReviewCreatePayload(Payload):
    rating: int = Field(ge=1, le=5)
    review_text: str = Field(default="", max_length=1000)
    title: str = Field(default="", max_length=100)
    is_spoiler: bool = False
    is_recommended: Optional[bool] = None


class ReviewUpdatePayload(Payload):
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    review_text: Optional[str] = Field(default=None, max_length=1000)
    title: Optional[str] = Field(default=None, max_length=100)
    is_spoiler: Optional[bool] = None
    is_recommended: Optional[bool] = None


class HelpfulVotePayload(Payload):
    is_helpful: bool = True


# --- watchlist ---

class ReminderPayload(Payload):
    enabled: bool = False
    date: Optional[datetime] = None
    notified: bool = False


class WatchlistUpdatePayload(Payload):
    status: Optional[WatchStatus] = None
    priority: Optional[Priority] = None
    notes: Optional[str] = Field(default=None, max_length=500)
    personal_rating: Optional[int] = Field(default=None, ge=1, le=5)
    is_private: Optional[bool] = None
    tags: Optional[TagList] = None
    reminder: Optional[ReminderPayload] = None


class WatchlistAddPayload(WatchlistUpdatePayload):
    movie_id: ObjectIdStr
    status: WatchStatus = "want_to_watch"
    priority: Priority = "medium"


class BulkWatchlistEntry(WatchlistUpdatePayload):
    movie_id: ObjectIdStr


class BulkWatchlistPayload(Payload):
    items: List[BulkWatchlistEntry] = Field(min_length=1)
