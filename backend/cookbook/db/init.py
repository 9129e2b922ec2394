# cookbook/db/init.py
# Mongo 연결 유틸 — motor (on_event용)

from __future__ import annotations
import logging
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from cookbook.core.config import settings

log = logging.getLogger(__name__)

_client: AsyncIOMotorClient | None = None
_db: AsyncIOMotorDatabase | None = None

async def init_db(uri: str | None = None, name: str | None = None) -> AsyncIOMotorDatabase:
    # 앱 시작 시 1회 호출해서 전역 커넥션 구성
    global _client, _db
    if _db is not None:
        return _db

    uri = uri or settings.MONGO_URI
    name = name or settings.MONGO_DB

    client = AsyncIOMotorClient(uri, serverSelectionTimeoutMS=5000)
    db = client[name]

    # 연결 확인 (준비 안 됐으면 예외)
    try:
        await db.command("ping")
    except Exception:
        client.close()
        raise

    _client, _db = client, db
    log.info("connected to %s/%s", uri, name)
    return _db

def get_db() -> AsyncIOMotorDatabase:
    # 모델/라우터에서 쓰는 핸들. 미초기화면 예외 발생
    if _db is None:
        raise RuntimeError("MongoDB is not initialized yet.")
    return _db

async def close_db() -> None:
    # 앱 종료 시 커넥션 정리
    global _client, _db
    if _client:
        _client.close()
        log.info("mongo connection closed")
    _client = None
    _db = None
