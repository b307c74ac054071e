import logging

from cinereview.errors import AuthenticationError, ValidationError
from cinereview.models import User
from cinereview.security import create_access_token, hash_password, verify_password
from cinereview.services.users import ensure_available

logger = logging.getLogger(__name__)


def register(payload):
    """Create the account and hand back ``(user, token)``."""
    ensure_available(username=payload.username, email=payload.email)
    user = User(
        username=payload.username,
        email=payload.email,
        password=hash_password(payload.password),
        bio="",
        favorite_genres=[],
    )
    user.save()
    logger.info("Registered user %s", user.pk)
    return user, create_access_token(user.pk)


def login(payload):
    user = User.objects(email=payload.email).first()
    if user is None or not verify_password(payload.password, user.password):
        raise AuthenticationError("Invalid email or password")
    return user, create_access_token(user.pk)


def change_password(user, payload):
    if not verify_password(payload.current_password, user.password):
        raise ValidationError("Current password is incorrect")
    user.password = hash_password(payload.new_password)
    user.save()
    return create_access_token(user.pk)
