from dotenv import load_dotenv
import os

load_dotenv()

MONGO_URI = os.getenv("MONGO_URI")
MONGO_DB = os.getenv("MONGO_DB", "cinereview")

JWT_SECRET = os.getenv("JWT_SECRET")
JWT_ALGORITHM = "HS256"
JWT_EXPIRE_DAYS = int(os.getenv("JWT_EXPIRE_DAYS", "7"))

APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def require_mongo_uri():
    if not MONGO_URI:
        raise EnvironmentError("MONGO_URI not found in environment")
    return MONGO_URI


def require_jwt_secret():
    if not JWT_SECRET:
        raise EnvironmentError("JWT_SECRET not found in environment")
    return JWT_SECRET


def is_production():
    return APP_ENV.lower() == "production"
