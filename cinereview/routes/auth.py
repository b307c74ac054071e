from fastapi import APIRouter, Body, Depends

from cinereview.models import User
from cinereview.routes.common import ok
from cinereview.schemas import LoginPayload, PasswordChangePayload, RegisterPayload
from cinereview.security import get_current_user
from cinereview.services import auth as auth_service
from cinereview.utils.serializers import serialize_auth_user, serialize_user_private
from cinereview.validation import require_valid

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", status_code=201)
def register(body: dict = Body(...)):
    payload = require_valid(RegisterPayload, body)
    user, token = auth_service.register(payload)
    return ok({"token": token, "user": serialize_auth_user(user)}, "User registered successfully")


@router.post("/login")
def login(body: dict = Body(...)):
    payload = require_valid(LoginPayload, body)
    user, token = auth_service.login(payload)
    return ok({"token": token, "user": serialize_auth_user(user)}, "Login successful")


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    return ok({"user": serialize_user_private(user)})


@router.put("/password")
def change_password(body: dict = Body(...), user: User = Depends(get_current_user)):
    payload = require_valid(PasswordChangePayload, body)
    token = auth_service.change_password(user, payload)
    return ok({"token": token}, "Password updated successfully")
