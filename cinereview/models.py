from datetime import datetime, timezone

from mongoengine import (
    Document, EmbeddedDocument, StringField, FloatField, BooleanField,
    ListField, DateTimeField, IntField, DictField, ReferenceField,
    EmbeddedDocumentField, QuerySet, EmailField
)

from cinereview.constants import (
    ACTIVE, GENRES, MIN_RELEASE_YEAR, PRIORITIES, RECORD_STATUSES,
    STAR_VALUES, WATCHLIST_STATUSES
)


def utcnow():
    # naive UTC, matching what pymongo hands back
    return datetime.now(timezone.utc).replace(tzinfo=None)


def empty_distribution():
    return {str(star): 0 for star in STAR_VALUES}


def reference_id(doc, field):
    """Id stored in a ReferenceField without dereferencing it."""
    value = doc._data.get(field)
    if value is None:
        return None
    if isinstance(value, Document):
        return value.pk
    return getattr(value, "id", value)


class SoftDeleteQuerySet(QuerySet):
    def active(self):
        return self.filter(status=ACTIVE)


class TimestampedDocument(Document):
    meta = {"abstract": True}

    created_at = DateTimeField(default=utcnow)
    updated_at = DateTimeField(default=utcnow)

    def save(self, *args, **kwargs):
        self.updated_at = utcnow()
        return super().save(*args, **kwargs)


class UserStats(EmbeddedDocument):
    total_reviews  = IntField(default=0, min_value=0)
    average_rating = FloatField(default=0.0, min_value=0, max_value=5)
    movies_watched = IntField(default=0, min_value=0)


class User(TimestampedDocument):
    meta = {
        "collection": "users",
        "db_alias": "default",
        "indexes": [
            {"fields": ["username"], "unique": True},
            {"fields": ["email"], "unique": True},
        ],
    }
    username        = StringField(required=True, min_length=3, max_length=30)
    email           = EmailField(required=True)
    password        = StringField(required=True)
    profile_picture = StringField(default="")
    bio             = StringField(default="", max_length=500)
    join_date       = DateTimeField(default=utcnow)
    is_admin        = BooleanField(default=False)
    favorite_genres = ListField(StringField(choices=GENRES))
    stats           = EmbeddedDocumentField(UserStats, default=UserStats)


class CastMember(EmbeddedDocument):
    name = StringField(required=True)
    role = StringField(default="")


class ExternalRatings(EmbeddedDocument):
    imdb_rating            = FloatField(min_value=0, max_value=10)
    rotten_tomatoes_rating = FloatField(min_value=0, max_value=100)


class Movie(TimestampedDocument):
    meta = {
        "collection": "movies",
        "db_alias": "default",
        "queryset_class": SoftDeleteQuerySet,
        "indexes": [
            "genre",
            "release_year",
            "-average_rating",
            "-created_at",
            "status",
        ],
    }
    title               = StringField(required=True, max_length=200)
    genre               = ListField(StringField(choices=GENRES), required=True)
    release_year        = IntField(required=True, min_value=MIN_RELEASE_YEAR)
    director            = StringField(required=True, max_length=100)
    cast                = ListField(EmbeddedDocumentField(CastMember))
    synopsis            = StringField(required=True, max_length=2000)
    poster_url          = StringField(required=True)
    trailer_url         = StringField()
    duration            = IntField(required=True, min_value=1)
    language            = StringField(required=True)
    country             = StringField(required=True)
    budget              = IntField(min_value=0)
    box_office          = IntField(min_value=0)
    external_ratings    = EmbeddedDocumentField(ExternalRatings, default=ExternalRatings)
    average_rating      = FloatField(default=0.0, min_value=0, max_value=5)
    total_reviews       = IntField(default=0, min_value=0)
    rating_distribution = DictField(field=IntField(min_value=0), default=empty_distribution)
    status              = StringField(choices=RECORD_STATUSES, default=ACTIVE)
    added_by            = ReferenceField(User, required=True)

    @property
    def is_active(self):
        return self.status == ACTIVE


class Review(TimestampedDocument):
    meta = {
        "collection": "reviews",
        "db_alias": "default",
        "queryset_class": SoftDeleteQuerySet,
        "indexes": [
            # one live review per user and movie; deleted ones do not count
            {
                "fields": ["user", "movie"],
                "unique": True,
                "partialFilterExpression": {"status": ACTIVE},
            },
            ("movie", "-created_at"),
            ("user", "-created_at"),
            "rating",
            "status",
        ],
    }
    user           = ReferenceField(User, required=True)
    movie          = ReferenceField(Movie, required=True)
    rating         = IntField(required=True, min_value=1, max_value=5)
    review_text    = StringField(default="", max_length=1000)
    title          = StringField(default="", max_length=100)
    is_recommended = BooleanField()
    helpful_votes  = IntField(default=0, min_value=0)
    total_votes    = IntField(default=0, min_value=0)
    is_edited      = BooleanField(default=False)
    edited_at      = DateTimeField()
    is_spoiler     = BooleanField(default=False)
    status         = StringField(choices=RECORD_STATUSES, default=ACTIVE)

    def clean(self):
        if self.is_recommended is None:
            self.is_recommended = self.rating is not None and self.rating >= 4

    @property
    def is_active(self):
        return self.status == ACTIVE

    @property
    def helpfulness_ratio(self):
        if not self.total_votes:
            return 0
        return int(self.helpful_votes / self.total_votes * 100 + 0.5)


class Reminder(EmbeddedDocument):
    enabled  = BooleanField(default=False)
    date     = DateTimeField()
    notified = BooleanField(default=False)


class WatchlistItem(TimestampedDocument):
    meta = {
        "collection": "watchlists",
        "db_alias": "default",
        "indexes": [
            {"fields": ["user", "movie"], "unique": True},
            ("user", "status", "-date_added"),
            ("user", "priority"),
        ],
    }
    user            = ReferenceField(User, required=True)
    movie           = ReferenceField(Movie, required=True)
    date_added      = DateTimeField(default=utcnow)
    status          = StringField(choices=WATCHLIST_STATUSES, default="want_to_watch")
    priority        = StringField(choices=PRIORITIES, default="medium")
    notes           = StringField(default="", max_length=500)
    watched_date    = DateTimeField()
    personal_rating = IntField(min_value=1, max_value=5)
    is_private      = BooleanField(default=False)
    tags            = ListField(StringField(max_length=50))
    reminder        = EmbeddedDocumentField(Reminder, default=Reminder)

    def set_status(self, status, now=None):
        """Move to ``status`` keeping watched_date in step with it."""
        self.status = status
        if status == "watched":
            if self.watched_date is None:
                self.watched_date = now or utcnow()
        else:
            self.watched_date = None
