GENRES = (
    "Action",
    "Adventure",
    "Comedy",
    "Crime",
    "Drama",
    "Fantasy",
    "Horror",
    "Mystery",
    "Romance",
    "Sci-Fi",
    "Thriller",
    "Western",
    "Animation",
    "Documentary",
    "Family",
    "Music",
    "War",
)

WATCHLIST_STATUSES = ("want_to_watch", "watching", "watched", "on_hold", "dropped")
PRIORITIES = ("low", "medium", "high")

# soft-delete states shared by Movie and Review
ACTIVE = "active"
DELETED = "deleted"
RECORD_STATUSES = (ACTIVE, DELETED)

STAR_VALUES = (1, 2, 3, 4, 5)

MIN_RELEASE_YEAR = 1888
MAX_PAGE_SIZE = 100

# sortBy value accepted by the API -> document field
MOVIE_SORT_FIELDS = {
    "title": "title",
    "releaseYear": "release_year",
    "averageRating": "average_rating",
    "totalReviews": "total_reviews",
    "createdAt": "created_at",
}
REVIEW_SORT_FIELDS = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "rating": "rating",
    "helpfulVotes": "helpful_votes",
}
WATCHLIST_SORT_FIELDS = {
    "dateAdded": "date_added",
    "priority": "priority",
    "status": "status",
    "updatedAt": "updated_at",
}
USER_SORT_FIELDS = {
    "createdAt": "created_at",
    "username": "username",
    "email": "email",
}
