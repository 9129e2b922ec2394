# cookbook/db/errors.py
# 모델 저장 시 호출자에게 올라가는 에러 종류
# - 필수 필드 누락/타입 변환 실패 → DocumentValidationError
# - 유니크 인덱스 위반 → DuplicateKeyError
# 그 외 드라이버 에러(연결 실패 등)는 감싸지 않고 그대로 전파

from __future__ import annotations
from typing import Any, Dict, List, Optional


class DocumentError(Exception):
    pass


class DocumentValidationError(DocumentError):
    def __init__(self, model: str, fields: List[str], detail: Optional[str] = None):
        self.model = model
        self.fields = list(fields)
        msg = detail or f"{model} validation failed: {', '.join(self.fields)} required"
        super().__init__(msg)


class DuplicateKeyError(DocumentError):
    def __init__(self, model: str, key: Optional[Dict[str, Any]] = None):
        self.model = model
        self.key = key or {}
        shown = ", ".join(f"{k}={v!r}" for k, v in self.key.items()) or "unique index"
        super().__init__(f"{model} duplicate key: {shown}")
