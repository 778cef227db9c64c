# api/middleware/body_limit.py
import logging
from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger("body_limit")


class BodySizeLimitMiddleware:
    """
    Rejects requests whose declared Content-Length exceeds the limit.
    Streaming bodies without a length are bounded by the upload handlers themselves.
    """
    def __init__(self, max_body_size: int = 50 * 1024 * 1024):
        self.max_body_size = max_body_size

    async def __call__(self, request: Request, call_next):
        content_length = request.headers.get("content-length")
        if content_length:
            try:
                declared = int(content_length)
            except ValueError:
                return JSONResponse(status_code=400, content={"detail": "Invalid Content-Length header"})

            if declared > self.max_body_size:
                logger.warning(f"Rejected request body of {declared} bytes on {request.url.path}")
                return JSONResponse(status_code=413, content={"detail": "Request body too large"})

        return await call_next(request)
