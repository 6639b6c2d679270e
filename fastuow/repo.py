"""레포지터리 패턴 구현."""
from __future__ import annotations

from typing import Any, Optional, Type

from fastuow.core import AbstractRepository, AbstractUnitOfWork, Predicate
from fastuow.core.models import E
from fastuow.domain import Person


class Repository(AbstractRepository[E]):
    """UoW 의 추적 컬렉션을 저장소로 하는 :class:`AbstractRepository` 구현입니다.

    ``SqlAlchemyUnitOfWork`` 든 테스트용 ``FakeUnitOfWork`` 든 같은 UoW 를
    공유하는 레포지터리끼리는 같은 트랜잭션에 참여합니다.
    """

    def __init__(self, entity_class: Type[E], uow: AbstractUnitOfWork):
        """임의의 엔티티 E 를 받아 E에 대한 Repository를 초기화합니다."""
        self.entity_class = entity_class
        self.uow = uow

    def __repr__(self) -> str:
        return f"Repository[{self.entity_class.__name__}]"

    def __enter__(self) -> Repository[E]:
        """`module`:contextmanager`의 필수 인터페이스 구현."""
        return self

    def add(self, item: E) -> None:
        self.uow.add(item)

    def update(self, item: E) -> E:
        return self.uow.update(item)

    def delete(self, item: E) -> None:
        self.uow.remove(item)

    def get(self, id: Any) -> Optional[E]:
        return self.uow[self.entity_class].get(id)

    def all(self) -> list[E]:
        return list(self.uow[self.entity_class])

    def find(self, predicate: Predicate) -> list[E]:
        return self.uow[self.entity_class].where(predicate)


class PersonRepository(Repository[Person]):
    """:class:`.Person` 레포지터리."""

    def __init__(self, uow: AbstractUnitOfWork):
        super().__init__(Person, uow)
