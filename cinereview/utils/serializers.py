from cinereview.models import Movie, User, reference_id


def _iso(value):
    return value.isoformat() if value else None


def _sid(value):
    return str(value) if value is not None else None


def _load_map(doc_cls, ids):
    # returns a map { id → document } for the distinct ids given
    ids = list({i for i in ids if i is not None})
    if not ids:
        return {}
    return {doc.pk: doc for doc in doc_cls.objects(id__in=ids)}


# --- users ---

def serialize_user_ref(user):
    if user is None:
        return None
    return {
        "_id": str(user.pk),
        "username": user.username,
        "profilePicture": user.profile_picture,
        "joinDate": _iso(user.join_date),
    }


def serialize_user_stats(stats):
    return {
        "totalReviews": stats.total_reviews if stats else 0,
        "averageRating": stats.average_rating if stats else 0,
        "moviesWatched": stats.movies_watched if stats else 0,
    }


def serialize_user_public(user):
    return {
        "_id": str(user.pk),
        "username": user.username,
        "bio": user.bio,
        "profilePicture": user.profile_picture,
        "joinDate": _iso(user.join_date),
        "favoriteGenres": list(user.favorite_genres or []),
        "stats": serialize_user_stats(user.stats),
    }


def serialize_user_private(user):
    data = serialize_user_public(user)
    data.update({
        "email": user.email,
        "isAdmin": bool(user.is_admin),
        "createdAt": _iso(user.created_at),
        "updatedAt": _iso(user.updated_at),
    })
    return data


def serialize_auth_user(user):
    # shape the browser client stores after login
    return {"id": str(user.pk), "name": user.username, "email": user.email, "isAdmin": bool(user.is_admin)}


# --- movies ---

def serialize_movie_summary(movie):
    return {
        "_id": str(movie.pk),
        "title": movie.title,
        "posterUrl": movie.poster_url,
        "genre": list(movie.genre or []),
        "releaseYear": movie.release_year,
        "director": movie.director,
        "duration": movie.duration,
        "averageRating": movie.average_rating,
        "totalReviews": movie.total_reviews,
        "isActive": movie.is_active,
    }


def serialize_movie(movie, added_by=None):
    ratings = movie.external_ratings
    data = serialize_movie_summary(movie)
    data.update({
        "cast": [{"name": c.name, "role": c.role} for c in movie.cast or []],
        "synopsis": movie.synopsis,
        "trailerUrl": movie.trailer_url,
        "language": movie.language,
        "country": movie.country,
        "budget": movie.budget,
        "boxOffice": movie.box_office,
        "externalRatings": {
            "imdbRating": ratings.imdb_rating if ratings else None,
            "rottenTomatoesRating": ratings.rotten_tomatoes_rating if ratings else None,
        },
        "ratingDistribution": dict(movie.rating_distribution or {}),
        "addedBy": (
            {"_id": str(added_by.pk), "username": added_by.username}
            if added_by is not None
            else {"_id": _sid(reference_id(movie, "added_by")), "username": None}
        ),
        "createdAt": _iso(movie.created_at),
        "updatedAt": _iso(movie.updated_at),
    })
    return data


def serialize_movies(movies):
    users = _load_map(User, [reference_id(m, "added_by") for m in movies])
    return [serialize_movie(m, users.get(reference_id(m, "added_by"))) for m in movies]


# --- reviews ---

def _serialize_review(review, user, movie):
    return {
        "_id": str(review.pk),
        "user": serialize_user_ref(user) or {"_id": _sid(reference_id(review, "user"))},
        "movie": (
            {
                "_id": str(movie.pk),
                "title": movie.title,
                "posterUrl": movie.poster_url,
                "releaseYear": movie.release_year,
            }
            if movie is not None
            else {"_id": _sid(reference_id(review, "movie"))}
        ),
        "rating": review.rating,
        "reviewText": review.review_text,
        "title": review.title,
        "isRecommended": bool(review.is_recommended),
        "helpfulVotes": review.helpful_votes,
        "totalVotes": review.total_votes,
        "helpfulnessRatio": review.helpfulness_ratio,
        "isEdited": bool(review.is_edited),
        "editedAt": _iso(review.edited_at),
        "isSpoiler": bool(review.is_spoiler),
        "isActive": review.is_active,
        "createdAt": _iso(review.created_at),
        "updatedAt": _iso(review.updated_at),
    }


def serialize_reviews(reviews):
    users = _load_map(User, [reference_id(r, "user") for r in reviews])
    movies = _load_map(Movie, [reference_id(r, "movie") for r in reviews])
    return [
        _serialize_review(r, users.get(reference_id(r, "user")), movies.get(reference_id(r, "movie")))
        for r in reviews
    ]


def serialize_review(review):
    return serialize_reviews([review])[0]


# --- watchlist ---

def _serialize_watchlist_item(item, movie):
    reminder = item.reminder
    return {
        "_id": str(item.pk),
        "user": _sid(reference_id(item, "user")),
        "movie": (
            serialize_movie_summary(movie)
            if movie is not None
            else {"_id": _sid(reference_id(item, "movie"))}
        ),
        "dateAdded": _iso(item.date_added),
        "status": item.status,
        "priority": item.priority,
        "notes": item.notes,
        "watchedDate": _iso(item.watched_date),
        "personalRating": item.personal_rating,
        "isPrivate": bool(item.is_private),
        "tags": list(item.tags or []),
        "reminder": {
            "enabled": bool(reminder.enabled) if reminder else False,
            "date": _iso(reminder.date) if reminder else None,
            "notified": bool(reminder.notified) if reminder else False,
        },
        "createdAt": _iso(item.created_at),
        "updatedAt": _iso(item.updated_at),
    }


def serialize_watchlist_items(items):
    movies = _load_map(Movie, [reference_id(i, "movie") for i in items])
    return [_serialize_watchlist_item(i, movies.get(reference_id(i, "movie"))) for i in items]


def serialize_watchlist_item(item):
    return serialize_watchlist_items([item])[0]
