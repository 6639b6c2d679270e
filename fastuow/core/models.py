from __future__ import annotations

import abc
from contextlib import AbstractContextManager
from typing import (
    Any,
    Callable,
    Generic,
    Iterator,
    Literal,
    Optional,
    Protocol,
    Type,
    TypeVar,
    Union,
)

from fastuow.core._logging import get_logger
from fastuow.core.errors import FastUoWError


class Entity(Protocol):
    """Entity 프로토콜 명세."""

    id: Any  # PK 컬럼으로 id 라는 필드를 제공해야 합니다.


E = TypeVar("E", bound=Entity)

Predicate = Union[Callable[[Any], bool], Any]
"""``find`` 조건.

엔티티를 받아 ``bool`` 을 리턴하는 함수이거나, ``Person.name == "A"`` 같은
SqlAlchemy 컬럼 표현식입니다.
"""

logger = get_logger("fastuow.uow")


class AbstractEntitySet(Generic[E], abc.ABC):
    """하나의 엔티티 타입에 대한 추적(tracked) 컬렉션.

    같은 UoW 에서 여러번 얻어도 항상 같은 저장소를 가리킵니다.
    """

    entity_class: Type[E]

    @abc.abstractmethod
    def __iter__(self) -> Iterator[E]:
        """저장 순서대로 모든 엔티티를 순회합니다."""
        raise NotImplementedError

    @abc.abstractmethod
    def get(self, id: Any) -> Optional[E]:
        """식별자로 엔티티를 찾습니다. 못 찾을 경우 ``None`` 을 리턴합니다."""
        raise NotImplementedError

    @abc.abstractmethod
    def where(self, predicate: Predicate) -> list[E]:
        """조건을 만족하는 엔티티 리스트를 리턴합니다."""
        raise NotImplementedError


class AbstractUnitOfWork(AbstractContextManager["AbstractUnitOfWork"]):
    """UnitOfWork(Persistence Context) 패턴의 추상 인터페이스입니다.

    UnitOfWork(UoW)는 영구 저장소의 유일한 진입점이며, 로드된 객체의
    최신 상태를 계속 트래킹 합니다. 변경 사항은 :meth:`commit` 이 호출될 때
    한번에(atomic) 반영되고, 실패하면 모두 폐기됩니다.

    스레드 안전하지 않습니다. 여러 스레드에서 공유할 경우 호출자가 락을 잡아야
    합니다.
    """

    def __enter__(self) -> AbstractUnitOfWork:
        """``with`` 블록에 진입했을때 실행되는 메소드입니다."""
        return self

    def __exit__(self, *args: Any) -> None:
        """``with`` 블록에서 빠져나갈 때 실행되는 메소드입니다.

        커밋되지 않은 변경을 롤백하고 UoW 를 닫습니다.
        """
        try:
            if not self.closed:
                self.rollback()  # commit() 안되었을때 변경을 롤백합니다.
        finally:
            self.close()

    def __getitem__(self, key: Type[E]) -> AbstractEntitySet[E]:
        return self.collection_for(key)

    @property
    @abc.abstractmethod
    def closed(self) -> bool:
        raise NotImplementedError

    @abc.abstractmethod
    def collection_for(self, entity_class: Type[E]) -> AbstractEntitySet[E]:
        """엔티티 타입에 해당하는 추적 컬렉션을 리턴합니다."""
        raise NotImplementedError

    @abc.abstractmethod
    def add(self, entity: E) -> None:
        """새 엔티티를 추가(insert)하도록 스테이징합니다."""
        raise NotImplementedError

    @abc.abstractmethod
    def update(self, entity: E) -> E:
        """엔티티를 upsert 하도록 스테이징하고, 추적중인 인스턴스를 리턴합니다."""
        raise NotImplementedError

    @abc.abstractmethod
    def remove(self, entity: E) -> None:
        """추적중인 엔티티를 id 로 찾아서 삭제하도록 스테이징합니다.

        Raises:
            NotFoundError: 해당 id의 엔티티가 없을 경우.
        """
        raise NotImplementedError

    def commit(self) -> int:
        """스테이징된 변경을 한번에 반영하고 영향받은 row 수를 리턴합니다.

        한 객체에 여러번 스테이징된 변경은 한번만 셉니다.

        Raises:
            PersistenceError: 커밋이 실패한 경우. 스테이징된 변경은 모두 폐기됩니다.
        """
        if self.closed:
            raise FastUoWError(f"{self!r} is already closed")
        affected = self._commit()
        logger.info("%r committed: %d row(s) affected", self, affected)
        return affected

    @abc.abstractmethod
    def _commit(self) -> int:
        raise NotImplementedError

    @abc.abstractmethod
    def rollback(self) -> None:
        """스테이징된 변경을 폐기합니다."""
        raise NotImplementedError

    @abc.abstractmethod
    def close(self) -> None:
        """연결된 리소스를 반환합니다. 여러번 호출해도 안전합니다."""
        raise NotImplementedError


class AbstractRepository(Generic[E], AbstractContextManager["AbstractRepository"]):
    """Repository 패턴의 추상 인터페이스 입니다.

    모든 상태 변경은 UoW 에 위임하며, 레포지터리는 절대 커밋하지 않습니다.
    """

    entity_class: Type[E]
    uow: AbstractUnitOfWork

    def __enter__(self) -> AbstractRepository[E]:
        """`module`:contextmanager`의 필수 인터페이스 구현."""
        return self

    def __exit__(
        self, typ: Any = None, value: Any = None, traceback: Any = None
    ) -> Literal[False]:
        self.close()
        return False

    def close(self) -> None:
        """레포지터리와 연결된 UoW 를 닫습니다."""
        self.uow.close()

    @abc.abstractmethod
    def add(self, item: E) -> None:
        """레포지터리에 :class:`E` 객체를 추가합니다."""
        raise NotImplementedError

    @abc.abstractmethod
    def update(self, item: E) -> E:
        """:class:`E` 객체를 upsert 합니다."""
        raise NotImplementedError

    @abc.abstractmethod
    def delete(self, item: E) -> None:
        """레포지터리에서 :class:`E` 객체를 삭제합니다."""
        raise NotImplementedError

    @abc.abstractmethod
    def get(self, id: Any) -> Optional[E]:
        """주어진 id 에 해당하는 :class:`E` 객체를 조회합니다.

        못 찾을 경우 ``None`` 을 리턴합니다.
        """
        raise NotImplementedError

    @abc.abstractmethod
    def all(self) -> list[E]:
        """모든 객체 리스트를 조회합니다."""
        raise NotImplementedError

    @abc.abstractmethod
    def find(self, predicate: Predicate) -> list[E]:
        """조건을 만족하는 객체 리스트를 조회합니다."""
        raise NotImplementedError
