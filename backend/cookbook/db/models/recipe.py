# 레시피 스키마
# name: 저장 시 필수 + 유니크 인덱스, 앞뒤 공백 제거
# ingredients: 임베디드 재료 목록 (measure 소문자/trim, amount 기본 1)
from __future__ import annotations
from typing import ClassVar, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cookbook.db.odm import Document


class Ingredient(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    ingredient: str
    measure: Optional[str] = None
    amount: float = 1

    @field_validator("measure")
    @classmethod
    def _normalize_measure(cls, v: Optional[str]) -> Optional[str]:
        # " Tbsp" → "tbsp"
        return v.strip().lower() if isinstance(v, str) else v


class Recipe(Document):
    collection_name: ClassVar[str] = "recipes"
    required_fields: ClassVar[tuple] = ("name",)
    indexes: ClassVar[tuple] = (
        ("name", {"unique": True, "name": "name_1"}),
    )

    name: Optional[str] = None
    source: Optional[str] = None
    cook_time: Optional[float] = Field(default=None, alias="cookTime")
    ingredients: List[Ingredient] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def _trim_name(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if isinstance(v, str) else v

    def add_ingredient(
        self,
        ingredient: str,
        measure: Optional[str] = None,
        amount: Optional[float] = None,
    ) -> Ingredient:
        """재료 1개 추가. 대입으로 처리해서 정규화/기본값이 바로 반영된다."""
        data = {"ingredient": ingredient, "measure": measure}
        if amount is not None:
            data["amount"] = amount
        item = Ingredient(**data)
        self.ingredients = [*self.ingredients, item]
        return item
