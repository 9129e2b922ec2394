# 컬렉션 인덱스 생성
# 앱 스타트업에서 한 번 ensure_indexes()를 await로 호출한다.

from cookbook.db.models.recipe import Recipe

# 인덱스를 선언한 모델 목록 (모델 추가 시 여기에 등록)
MODELS = (Recipe,)

async def ensure_indexes():
    # recipes.name 유니크 → 중복 이름 저장 시 DuplicateKeyError
    for model in MODELS:
        await model.ensure_indexes()
