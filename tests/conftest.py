import os

os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("APP_ENV", "test")

import mongomock
import pytest
from fastapi.testclient import TestClient

from cinereview.db import Database
from cinereview.main import create_app
from cinereview.models import Movie, User
from cinereview.security import create_access_token, hash_password

PASSWORD = "secret123"

MOVIE_PAYLOAD = {
    "title": "The Long Night",
    "genre": ["Drama", "Thriller"],
    "releaseYear": 2010,
    "director": "Ana Ruiz",
    "cast": [{"name": "Sam Lee", "role": "Detective"}],
    "synopsis": "A detective works one last case.",
    "posterUrl": "https://img.example.com/long-night.jpg",
    "duration": 120,
    "language": "English",
    "country": "USA",
}


def auth(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def database():
    return Database("mongodb://localhost", "cinereview_test", client_class=mongomock.MongoClient)


@pytest.fixture
def app(database):
    return create_app(database=database)


@pytest.fixture
def client(app):
    # entering the client runs the lifespan, which connects the database
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(client):
    def _make_user(username="viewer", email=None, is_admin=False):
        user = User(
            username=username,
            email=email or f"{username.replace(' ', '')}@example.com",
            password=hash_password(PASSWORD),
            is_admin=is_admin,
        )
        user.save()
        return user
    return _make_user


@pytest.fixture
def user(make_user):
    return make_user("viewer")


@pytest.fixture
def other_user(make_user):
    return make_user("critic")


@pytest.fixture
def admin(make_user):
    return make_user("admin", is_admin=True)


@pytest.fixture
def token(user):
    return create_access_token(user.pk)


@pytest.fixture
def other_token(other_user):
    return create_access_token(other_user.pk)


@pytest.fixture
def admin_token(admin):
    return create_access_token(admin.pk)


@pytest.fixture
def make_movie(admin):
    def _make_movie(**overrides):
        fields = {
            "title": "The Long Night",
            "genre": ["Drama", "Thriller"],
            "release_year": 2010,
            "director": "Ana Ruiz",
            "synopsis": "A detective works one last case.",
            "poster_url": "https://img.example.com/long-night.jpg",
            "duration": 120,
            "language": "English",
            "country": "USA",
            "added_by": admin,
        }
        fields.update(overrides)
        movie = Movie(**fields)
        movie.save()
        return movie
    return _make_movie


@pytest.fixture
def movie(make_movie):
    return make_movie()
