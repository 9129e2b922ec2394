# 테스트 공용 픽스처
# - db: 로컬 MongoDB에 붙어서 recipes 컬렉션을 비우고 인덱스를 보장한다
#   몽고가 안 떠 있으면 DB 테스트(mongo 마커)는 skip.
#   COOKBOOK_REQUIRE_MONGO=1 이면 skip 대신 실패 (CI에서 DB 검증 누락 방지)

import os

import pytest
import pytest_asyncio

from cookbook.core.config import settings
from cookbook.db.init import close_db, init_db
from cookbook.db.indexes import ensure_indexes
from cookbook.db.models.recipe import Recipe

TEST_DB = os.getenv("COOKBOOK_TEST_DB", "cookbook_test")
REQUIRE_MONGO = os.getenv("COOKBOOK_REQUIRE_MONGO", "").strip().lower() in {"1", "true", "yes"}

_mongo_down = False


@pytest_asyncio.fixture
async def db():
    global _mongo_down
    if _mongo_down:
        pytest.skip("MongoDB not available")
    try:
        handle = await init_db(settings.MONGO_URI, TEST_DB)
    except Exception as e:
        if REQUIRE_MONGO:
            pytest.fail(f"MongoDB required but not available: {e}")
        _mongo_down = True
        pytest.skip(f"MongoDB not available: {e}")

    await Recipe.delete_many({})
    await ensure_indexes()
    yield handle
    await close_db()


@pytest_asyncio.fixture
async def breakfast(db):
    # 재료 3개 / 2개 / 0개
    await Recipe.create(
        name="Pancakes",
        cookTime=20,
        ingredients=[{"ingredient": "egg"}, {"ingredient": "flour"}, {"ingredient": "milk"}],
    )
    await Recipe.create(
        name="Biscuits",
        cookTime=30,
        ingredients=[{"ingredient": "flour"}, {"ingredient": "milk"}],
    )
    await Recipe.create(name="French Toast", cookTime=10)
    return db
