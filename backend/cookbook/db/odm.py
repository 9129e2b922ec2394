# cookbook/db/odm.py
# pydantic 모델 ↔ 몽고 문서 매핑 (motor 기반)
# - Document: 저장/조회/삭제 + 필수필드 검사 + 유니크 위반 변환
# - Query: find().where().sort().select() 체인, await 하면 실행
# - array_size: 배열 길이 비교 필터 헬퍼

from __future__ import annotations
import logging
from typing import Any, ClassVar, Dict, Generic, List, Mapping, Optional, Sequence, Tuple, Type, TypeVar, Union

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorCollection
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError
from pymongo import ASCENDING, DESCENDING
from pymongo import errors as mongo_errors

from cookbook.db.errors import DocumentError, DocumentValidationError, DuplicateKeyError
from cookbook.db.init import get_db

log = logging.getLogger(__name__)

D = TypeVar("D", bound="Document")

SortSpec = Union[str, Mapping[str, int], Sequence[Tuple[str, int]]]
ProjectionSpec = Union[str, Mapping[str, Any]]

_SIZE_OPS = {"$lt", "$lte", "$gt", "$gte", "$eq", "$ne"}

# ------------------------------
# 쿼리 스펙 파서
# ------------------------------

def array_size(field: str, op: str, n: int) -> Dict[str, Any]:
    """
    배열 필드 길이 비교 필터. 필드가 없으면 빈 배열로 본다.
    array_size("ingredients", "$lt", 3) → 재료 3개 미만 문서
    """
    if op not in _SIZE_OPS:
        raise ValueError(f"unsupported size operator: {op}")
    return {"$expr": {op: [{"$size": {"$ifNull": [f"${field}", []]}}, n]}}

def parse_sort(spec: SortSpec) -> List[Tuple[str, int]]:
    # "-cookTime name" → [("cookTime", -1), ("name", 1)]
    if isinstance(spec, str):
        out: List[Tuple[str, int]] = []
        for tok in spec.split():
            if tok.startswith("-"):
                out.append((tok[1:], DESCENDING))
            else:
                out.append((tok.lstrip("+"), ASCENDING))
        return out
    if isinstance(spec, Mapping):
        return [(k, int(v)) for k, v in spec.items()]
    return [(k, int(v)) for k, v in spec]

def parse_projection(spec: ProjectionSpec) -> Dict[str, Any]:
    # "name cookTime" → {"name": 1, "cookTime": 1}, "-_id" → {"_id": 0}
    if isinstance(spec, Mapping):
        return dict(spec)
    out: Dict[str, Any] = {}
    for tok in spec.split():
        if tok.startswith("-"):
            out[tok[1:]] = 0
        else:
            out[tok.lstrip("+")] = 1
    return out

def merge_filters(base: Mapping[str, Any], extra: Mapping[str, Any]) -> Dict[str, Any]:
    # 키가 겹치면 덮어쓰지 않고 $and로 묶는다
    if not base:
        return dict(extra)
    if not extra:
        return dict(base)
    if set(base) & set(extra):
        return {"$and": [dict(base), dict(extra)]}
    return {**base, **extra}

def _validation_error(model: str, e: ValidationError) -> DocumentValidationError:
    locs = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
    return DocumentValidationError(model, locs, str(e))

def _duplicate_key(model: str, e: mongo_errors.DuplicateKeyError) -> DuplicateKeyError:
    details = e.details or {}
    return DuplicateKeyError(model, details.get("keyValue"))

# ------------------------------
# Query
# ------------------------------

class Query(Generic[D]):
    # 실행 전까지 조건만 쌓아 두는 지연 쿼리

    def __init__(self, model: Type[D], filter: Optional[Mapping[str, Any]] = None):
        self.model = model
        self.filter: Dict[str, Any] = dict(filter or {})
        self.projection: Optional[Dict[str, Any]] = None
        self._sort: List[Tuple[str, int]] = []
        self._skip = 0
        self._limit = 0

    def where(self, filter: Mapping[str, Any]) -> "Query[D]":
        self.filter = merge_filters(self.filter, filter)
        return self

    def sort(self, spec: SortSpec) -> "Query[D]":
        self._sort.extend(parse_sort(spec))
        return self

    def select(self, spec: ProjectionSpec) -> "Query[D]":
        self.projection = {**(self.projection or {}), **parse_projection(spec)}
        return self

    def skip(self, n: int) -> "Query[D]":
        self._skip = n
        return self

    def limit(self, n: int) -> "Query[D]":
        self._limit = n
        return self

    async def exec(self) -> List[D]:
        cursor = self.model.collection().find(self.filter, self.projection)
        if self._sort:
            cursor = cursor.sort(self._sort)
        if self._skip:
            cursor = cursor.skip(self._skip)
        if self._limit:
            cursor = cursor.limit(self._limit)
        docs = await cursor.to_list(length=None)
        partial = self.projection is not None
        return [self.model.from_mongo(d, partial=partial) for d in docs]

    to_list = exec

    def __await__(self):
        return self.exec().__await__()

    def __repr__(self) -> str:
        return (
            f"<Query {self.model.__name__} filter={self.filter} "
            f"sort={self._sort} projection={self.projection}>"
        )

# ------------------------------
# Document
# ------------------------------

class Document(BaseModel):
    # 필드 대입 시에도 검증/정규화가 바로 적용되도록 validate_assignment
    model_config = ConfigDict(
        populate_by_name=True,
        validate_assignment=True,
        arbitrary_types_allowed=True,
    )

    collection_name: ClassVar[str] = ""
    # 저장 시점에 검사하는 필수 필드 (생성은 불완전해도 허용)
    required_fields: ClassVar[Tuple[str, ...]] = ()
    # (keys, create_index 옵션) 목록
    indexes: ClassVar[Tuple[Tuple[Any, Dict[str, Any]], ...]] = ()

    id: Optional[ObjectId] = Field(default=None, alias="_id")

    # projection으로 일부 필드만 읽어온 문서인지
    _partial: bool = PrivateAttr(default=False)

    # --- 변환 ---

    @classmethod
    def from_mongo(cls: Type[D], doc: Mapping[str, Any], partial: bool = False) -> D:
        obj = cls.model_validate(doc)
        obj._partial = partial
        return obj

    def to_mongo(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)

    def to_object(self) -> Dict[str, Any]:
        # projection 결과면 실제로 읽어온 필드만 돌려준다
        if self._partial:
            return self.model_dump(by_alias=True, exclude_unset=True)
        return self.to_mongo()

    @property
    def is_new(self) -> bool:
        return self.id is None

    # --- 검증 ---

    def revalidate(self) -> None:
        # 리스트 in-place 변경(append 등)은 대입 검증을 안 거치므로 저장 직전에 다시 캐스팅
        names = self.model_fields_set if self._partial else set(type(self).model_fields)
        data = {f: getattr(self, f) for f in names}
        try:
            checked = type(self).model_validate(data)
        except ValidationError as e:
            raise _validation_error(type(self).__name__, e) from e
        self.__dict__.update({f: getattr(checked, f) for f in names})

    def validate_required(self) -> None:
        fields = self.required_fields
        if self._partial:
            # projection 문서는 읽어온 필드만 검사
            fields = tuple(f for f in fields if f in self.model_fields_set)
        missing = [f for f in fields if getattr(self, f) in (None, "")]
        if missing:
            raise DocumentValidationError(type(self).__name__, missing)

    # --- 컬렉션 ---

    @classmethod
    def collection(cls) -> AsyncIOMotorCollection:
        if not cls.collection_name:
            raise TypeError(f"{cls.__name__} has no collection_name")
        return get_db()[cls.collection_name]

    @classmethod
    async def ensure_indexes(cls) -> List[str]:
        col = cls.collection()
        names = []
        for keys, options in cls.indexes:
            names.append(await col.create_index(keys, **options))
        log.info("indexes ensured on %s: %s", cls.collection_name, names)
        return names

    # --- 인스턴스 저장/삭제 ---

    async def save(self: D) -> D:
        self.revalidate()
        self.validate_required()
        col = self.collection()
        try:
            if self._partial:
                # 일부 필드만 가진 문서는 가진 필드만 $set (전체 교체 금지)
                if self.id is None:
                    raise DocumentError(f"cannot save a {type(self).__name__} projection without _id")
                fields = self.model_dump(by_alias=True, exclude_unset=True, exclude={"id"})
                if not fields:
                    return self
                res = await col.update_one({"_id": self.id}, {"$set": fields})
                if res.matched_count == 0:
                    raise DocumentError(f"{type(self).__name__} {self.id} not found")
            elif self.id is None:
                res = await col.insert_one(self.to_mongo())
                self.id = res.inserted_id
            else:
                res = await col.replace_one({"_id": self.id}, self.to_mongo())
                if res.matched_count == 0:
                    # 이미 삭제된 문서를 다시 만들지 않는다
                    raise DocumentError(f"{type(self).__name__} {self.id} not found")
        except mongo_errors.DuplicateKeyError as e:
            raise _duplicate_key(type(self).__name__, e) from e
        return self

    async def delete(self) -> int:
        if self.id is None:
            return 0
        res = await self.collection().delete_one({"_id": self.id})
        return res.deleted_count

    # --- 클래스 단위 조작 ---

    @classmethod
    async def create(cls: Type[D], data: Optional[Mapping[str, Any]] = None, **fields: Any) -> D:
        """새 문서 생성 후 저장. 타입 변환 실패도 DocumentValidationError로 올린다."""
        payload = {**(data or {}), **fields}
        try:
            obj = cls(**payload)
        except ValidationError as e:
            raise _validation_error(cls.__name__, e) from e
        return await obj.save()

    @classmethod
    def find(cls: Type[D], filter: Optional[Mapping[str, Any]] = None) -> Query[D]:
        return Query(cls, filter)

    @classmethod
    async def find_one(
        cls: Type[D],
        filter: Optional[Mapping[str, Any]] = None,
        projection: Optional[ProjectionSpec] = None,
    ) -> Optional[D]:
        proj = parse_projection(projection) if projection is not None else None
        doc = await cls.collection().find_one(dict(filter or {}), proj)
        if doc is None:
            return None
        return cls.from_mongo(doc, partial=proj is not None)

    @classmethod
    async def find_by_id(cls: Type[D], id: Union[str, ObjectId]) -> Optional[D]:
        try:
            oid = id if isinstance(id, ObjectId) else ObjectId(id)
        except (InvalidId, TypeError):
            return None
        return await cls.find_one({"_id": oid})

    @classmethod
    async def update_one(cls, filter: Mapping[str, Any], update: Mapping[str, Any]) -> int:
        # 업데이트 연산자 그대로 전달 (모델 검증/정규화는 거치지 않음)
        try:
            res = await cls.collection().update_one(dict(filter), dict(update))
        except mongo_errors.DuplicateKeyError as e:
            raise _duplicate_key(cls.__name__, e) from e
        return res.modified_count

    @classmethod
    async def delete_many(cls, filter: Optional[Mapping[str, Any]] = None) -> int:
        res = await cls.collection().delete_many(dict(filter or {}))
        return res.deleted_count

    @classmethod
    async def count(cls, filter: Optional[Mapping[str, Any]] = None) -> int:
        return await cls.collection().count_documents(dict(filter or {}))
