import logging
import time

from fastapi import Request

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

logger = logging.getLogger("cinereview.http")


def configure_logging(level="INFO"):
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("cinereview").setLevel(level)


async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(
        "%s %s -> %s (%.1f ms)",
        request.method, request.url.path, response.status_code, elapsed_ms,
    )
    return response
