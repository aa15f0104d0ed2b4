from hashlib import sha256
from typing import Callable

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from certichain.db.session import SessionLocal
from certichain.models.tokens import IdempotencyKey


def _replayable(status_code: int) -> bool:
    return 200 <= status_code < 300 or status_code == 409


class IdempotencyMiddleware(BaseHTTPMiddleware):
    """Replays the stored response for a repeated ``Idempotency-Key``.

    The signature covers method, path and body, so a key reused with a
    different payload is treated as a new request. Only successes and
    conflicts are stored; auth failures and 5xx responses let a retry through.
    """

    def __init__(self, app, session_factory: Callable[[], Session] = SessionLocal):
        super().__init__(app)
        self.session_factory = session_factory

    async def dispatch(self, request: Request, call_next):
        if request.method not in {"POST", "PUT", "PATCH", "DELETE"}:
            return await call_next(request)

        key = request.headers.get("Idempotency-Key")
        if not key:
            return await call_next(request)

        body = await request.body()
        signature = sha256(request.method.encode() + request.url.path.encode() + b"\n" + body).hexdigest()
        with self.session_factory() as db:
            exists = db.execute(
                select(IdempotencyKey).where(IdempotencyKey.key == key, IdempotencyKey.signature == signature)
            ).scalar_one_or_none()
            if exists:
                return Response(
                    content=exists.response_body,
                    media_type=exists.response_mime,
                    status_code=exists.status_code,
                    headers={"Idempotent-Replay": "true"},
                )

        response = await call_next(request)
        payload = b""
        async for chunk in response.body_iterator:
            payload += chunk
        if _replayable(response.status_code):
            with self.session_factory() as db:
                db.add(
                    IdempotencyKey(
                        key=key,
                        signature=signature,
                        response_body=payload,
                        response_mime=response.media_type or "application/json",
                        status_code=response.status_code,
                    )
                )
                try:
                    db.commit()
                except IntegrityError:
                    # a concurrent request with the same key stored first
                    db.rollback()
        headers = {k: v for k, v in response.headers.items() if k.lower() != "content-length"}
        return Response(content=payload, status_code=response.status_code, headers=headers, media_type=response.media_type)
