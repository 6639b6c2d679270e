"""서비스 레이어.

외부 코드가 호출해야 하는 유일한 API 입니다. 서비스는 영속성 상태를 갖지 않고,
레포지터리에 변경을 스테이징한 뒤 UoW 를 커밋하는 트랜잭션 경계 역할만 합니다.
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Generator, Generic, Iterable, Optional, TypeVar

from fastuow import schema
from fastuow.core import AbstractRepository, AbstractUnitOfWork, Predicate
from fastuow.core.models import E
from fastuow.domain import Person
from fastuow.schema import PersonModel

M = TypeVar("M")


class CrudService(Generic[E, M]):
    """엔티티 E 와 모델 M 에 대한 CRUD 서비스.

    하위 클래스는 :meth:`to_model`, :meth:`to_entity` 매핑을 제공해야 합니다.
    """

    def __init__(self, uow: AbstractUnitOfWork, repo: AbstractRepository[E]):
        self.uow = uow
        self.repo = repo

    def __repr__(self) -> str:
        return f"{type(self).__name__}[{self.repo!r}]"

    def to_model(self, entity: E) -> M:
        raise NotImplementedError

    def to_entity(self, model: M) -> E:
        raise NotImplementedError

    @contextmanager
    def _transaction(self) -> Generator[None, None, None]:
        """블록 안에서 스테이징한 변경을 커밋합니다.

        커밋 전에 에러가 나면 스테이징된 변경을 모두 롤백합니다. 커밋 자체의
        실패는 UoW 가 롤백한 뒤 :class:`.PersistenceError` 로 알려줍니다.
        """
        try:
            yield
        except Exception:
            self.uow.rollback()
            raise
        self.uow.commit()

    def add(self, model: M) -> M:
        """모델을 추가하고 커밋합니다. 할당된 id 가 채워진 모델을 리턴합니다."""
        entity = self.to_entity(model)
        with self._transaction():
            self.repo.add(entity)
        return self.to_model(entity)

    def update(self, model: M) -> M:
        """모델을 upsert 하고 커밋합니다."""
        with self._transaction():
            entity = self.repo.update(self.to_entity(model))
        return self.to_model(entity)

    def delete(self, model: M) -> None:
        """모델과 같은 id 의 엔티티를 삭제하고 커밋합니다.

        Raises:
            NotFoundError: 해당 id 의 엔티티가 없을 경우.
        """
        with self._transaction():
            self.repo.delete(self.to_entity(model))

    def get(self, id: Any) -> Optional[M]:
        entity = self.repo.get(id)
        return self.to_model(entity) if entity is not None else None

    def all(self) -> list[M]:
        return self._to_models(self.repo.all())

    def find(self, predicate: Predicate) -> list[M]:
        """엔티티 필드에 대한 조건으로 모델 리스트를 조회합니다."""
        return self._to_models(self.repo.find(predicate))

    def close(self) -> None:
        """레포지터리(와 UoW)를 닫습니다."""
        self.repo.close()

    def _to_models(self, entities: Iterable[E]) -> list[M]:
        return [self.to_model(it) for it in entities]


class PersonService(CrudService[Person, PersonModel]):
    """:class:`.PersonModel` 서비스."""

    def to_model(self, entity: Person) -> PersonModel:
        return schema.to_model(entity)

    def to_entity(self, model: PersonModel) -> Person:
        return schema.to_entity(model)

    def _to_models(self, entities: Iterable[Person]) -> list[PersonModel]:
        return schema.to_models(entities)
