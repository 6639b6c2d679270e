"""스키마 변환을 담당하는 모듈입니다.

서비스 바깥으로 나가는 타입은 :class:`PersonModel` 뿐이며, 엔티티와 레퍼런스를
공유하지 않습니다. 변환 함수들은 상태가 없고 부수효과도 없습니다.
"""
from __future__ import annotations

from typing import Iterable, Optional, overload

from pydantic import BaseModel, ConfigDict, Field

from fastuow.domain import NAME_MAX_LENGTH, Person


class PersonModel(BaseModel):
    """애플리케이션 레이어에서 사용하는 :class:`.Person` 모델."""

    model_config = ConfigDict(validate_assignment=True)

    id: Optional[int] = None
    name: Optional[str] = Field(default=None, max_length=NAME_MAX_LENGTH)


@overload
def to_model(entity: Person) -> PersonModel:
    ...


@overload
def to_model(entity: None) -> None:
    ...


def to_model(entity: Optional[Person]) -> Optional[PersonModel]:
    """엔티티를 모델로 변환합니다. ``None`` 은 그대로 ``None`` 입니다."""
    if entity is None:
        return None
    return PersonModel(id=entity.id, name=entity.name)


def to_entity(model: PersonModel) -> Person:
    """모델을 새 엔티티로 변환합니다."""
    return Person(id=model.id, name=model.name)


def to_models(entities: Iterable[Person]) -> list[PersonModel]:
    return [to_model(it) for it in entities]


def to_entities(models: Iterable[PersonModel]) -> list[Person]:
    return [to_entity(it) for it in models]
