"""
SwingEats — Order placement replay protection

Bay tablets retry "Place order" on flaky Wi-Fi. A POST to /api/orders carrying an
Idempotency-Key places at most one order per key:

  first request    → key claimed (SET NX, short TTL), handler runs
                     2xx   → response stored under the key for IDEMPOTENCY_KEY_TTL_SECONDS
                     other → key released so the corrected cart can be resent
  same key, body   → stored response replayed with X-Idempotency-Replay: true
  still running    → 409
  different body   → 422

Records are JSON: {"fingerprint", "state": "pending"|"done", "status_code", "body"}.
If Redis is unreachable the request is processed without replay protection.
"""
import hashlib
import json
import logging

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware

from swingeats.core.config import get_settings
from swingeats.core.redis_client import get_redis, redis_key

settings = get_settings()
logger = logging.getLogger(__name__)

ORDER_PATHS = {"/api/orders", "/api/orders/"}
REPLAY_HEADER = "X-Idempotency-Replay"


def fingerprint(method: str, path: str, body: bytes) -> str:
    digest = hashlib.sha256()
    digest.update(f"{method} {path}\n".encode())
    digest.update(body)
    return digest.hexdigest()


def _conflict(status_code: int, detail: str) -> JSONResponse:
    return JSONResponse(content={"detail": detail}, status_code=status_code)


class IdempotencyMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        idem_key = request.headers.get("Idempotency-Key")
        if request.method != "POST" or request.url.path not in ORDER_PATHS or not idem_key:
            return await call_next(request)

        redis = get_redis()
        key = redis_key("idempotency", idem_key)
        body = await request.body()
        pending = {"fingerprint": fingerprint(request.method, request.url.path, body), "state": "pending"}

        try:
            claimed = await redis.set(
                key, json.dumps(pending), nx=True, ex=settings.IDEMPOTENCY_PENDING_TTL_SECONDS
            )
            record = None if claimed else await redis.get(key)
        except RedisError as exc:
            logger.warning("Replay store unavailable, placing order without it: %s", exc)
            return await call_next(request)

        if record is not None:
            return self._answer_repeat(idem_key, json.loads(record), pending["fingerprint"])
        if not claimed:
            # the record expired between SET NX and GET; serve without a claim
            return await call_next(request)

        try:
            response = await call_next(request)
        except Exception:
            await self._release(redis, key)
            raise

        content = b""
        async for chunk in response.body_iterator:
            content += chunk

        if response.status_code < 300:
            done = {
                **pending,
                "state": "done",
                "status_code": response.status_code,
                "body": content.decode("utf-8"),
            }
            try:
                await redis.set(key, json.dumps(done), ex=settings.IDEMPOTENCY_KEY_TTL_SECONDS)
            except RedisError as exc:
                logger.warning("Could not store the response for key %s: %s", idem_key, exc)
        else:
            await self._release(redis, key)

        return Response(
            content=content,
            status_code=response.status_code,
            media_type=response.media_type,
            headers=dict(response.headers),
        )

    @staticmethod
    def _answer_repeat(idem_key: str, record: dict, fp: str) -> Response:
        if record.get("fingerprint") != fp:
            logger.info("Idempotency-Key %s reused with a different order", idem_key)
            return _conflict(422, "Idempotency-Key was already used for a different order.")
        if record.get("state") != "done":
            return _conflict(409, "An order with this Idempotency-Key is still being placed.")
        logger.info("Replaying stored response for Idempotency-Key %s", idem_key)
        return Response(
            content=record["body"],
            status_code=record["status_code"],
            media_type="application/json",
            headers={REPLAY_HEADER: "true"},
        )

    @staticmethod
    async def _release(redis, key: str) -> None:
        try:
            await redis.delete(key)
        except RedisError as exc:
            logger.warning("Could not release idempotency key %s: %s", key, exc)
