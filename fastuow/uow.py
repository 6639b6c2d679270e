"""UnitOfWork 패턴 모듈.

UoW 는 영구 저장소의 유일한 진입점이며, 로드된 객체의 최신 상태를 계속 트래킹 합니다.
이를 통해 얻을 수 있는 3가지 이득은 다음과 같습니다.

- A *stable snapshot of the database* to work with, so the objects
  we use aren’t changing halfway through an operation
- A way to persist all of our *changes at once*, so if something goes wrong,
  we don’t end up in an inconsistent state
- A *simple API* to our persistence concerns and a handy place to get a repository

SqlAlchemy를 이용한 기본 구현체를 제공합니다.
"""
from __future__ import annotations

from typing import Any, Iterator, Optional, Type

from sqlalchemy import event, inspect, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql import ClauseElement

from fastuow.core import (
    AbstractEntitySet,
    AbstractUnitOfWork,
    FastUoWError,
    NotFoundError,
    PersistenceError,
    Predicate,
)
from fastuow.core.models import E, logger
from fastuow.orm import SessionMaker


class EntitySet(AbstractEntitySet[E]):
    """``Session`` 위에서 동작하는 엔티티 컬렉션.

    조회는 세션의 autoflush 를 거치므로 같은 UoW 에서 스테이징된 변경도 보입니다.
    """

    def __init__(self, entity_class: Type[E], uow: SqlAlchemyUnitOfWork):
        self.entity_class = entity_class
        self.uow = uow

    def __repr__(self) -> str:
        return f"EntitySet[{self.entity_class.__name__}]"

    def __iter__(self) -> Iterator[E]:
        return iter(self.where(None))

    def get(self, id: Any) -> Optional[E]:
        if id is None:
            return None
        return self.uow.session.get(self.entity_class, id)

    def where(self, predicate: Optional[Predicate]) -> list[E]:
        """`predicate` 가 SqlAlchemy 표현식이면 ``WHERE`` 절로 변환하고,
        함수라면 조회한 엔티티에 직접 적용합니다.
        """
        stmt = select(self.entity_class).order_by(
            *inspect(self.entity_class).primary_key
        )
        if isinstance(predicate, ClauseElement):
            return list(self.uow.session.scalars(stmt.where(predicate)))

        items = list(self.uow.session.scalars(stmt))
        if predicate is None:
            return items
        return [it for it in items if predicate(it)]


class SqlAlchemyUnitOfWork(AbstractUnitOfWork):
    """``SqlAlchemy`` ORM을 이용한 UnitOfWork 패턴 구현입니다.

    세션은 처음 사용할 때 생성되며 :meth:`close` 가 호출될 때 반환됩니다.
    """

    def __init__(self, get_session: SessionMaker) -> None:
        """``SqlAlchemy`` 기반의 UoW를 초기화합니다."""
        self.get_session = get_session
        self.committed = False
        self._session: Optional[Session] = None
        self._sets: dict[type, EntitySet] = {}
        self._touched: dict[int, Any] = {}
        self._closed = False

    def __repr__(self):
        return f"SqlAlchemyUnitOfWork[{id(self):#x}]"

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def session(self) -> Session:
        """UoW 가 소유한 세션. 닫힌 UoW 에서 접근하면 에러가 발생합니다."""
        if self._closed:
            raise FastUoWError(f"{self!r} is already closed")
        if self._session is None:
            self._session = self.get_session()
            event.listen(self._session, "after_flush", self._count_flushed)
        return self._session

    def collection_for(self, entity_class: Type[E]) -> EntitySet[E]:
        if entity_class not in self._sets:
            self._sets[entity_class] = EntitySet(entity_class, self)
        return self._sets[entity_class]

    def add(self, entity: E) -> None:
        logger.debug("stage add: %r", entity)
        self.session.add(entity)

    def update(self, entity: E) -> E:
        """같은 id 의 엔티티가 있으면 값을 덮어쓰고, 없으면 추가합니다(upsert)."""
        logger.debug("stage update: %r", entity)
        return self.session.merge(entity)

    def remove(self, entity: E) -> None:
        """전달받은 객체가 아니라 id 로 찾은 추적중인 객체를 삭제합니다."""
        tracked = self.collection_for(type(entity)).get(entity.id)
        if tracked is None:
            raise NotFoundError(
                f"{type(entity).__name__} not found: id={entity.id!r}"
            )
        logger.debug("stage remove: %r", tracked)
        self.session.delete(tracked)

    def _commit(self) -> int:
        session = self.session
        try:
            session.flush()
            affected = len(self._touched)
            session.commit()
        except SQLAlchemyError as ex:
            logger.exception("%r failed to commit, rolling back", self)
            self.rollback()
            raise PersistenceError(f"commit failed: {ex}") from ex
        self._touched.clear()
        self.committed = True
        return affected

    def rollback(self) -> None:
        """세션을 롤백합니다."""
        self._touched.clear()
        if self._session is not None:
            self._session.rollback()

    def close(self) -> None:
        """세션을 close합니다."""
        if self._closed:
            return
        self._closed = True
        self._sets.clear()
        if self._session is not None:
            self._session.close()
            self._session = None

    def _count_flushed(self, session: Session, flush_context: Any) -> None:
        # after_flush 시점에는 new/dirty/deleted 가 아직 flush 이전 상태입니다.
        # 한 트랜잭션에서 여러번 flush 된 객체도 한번만 셉니다.
        for it in (*session.new, *session.deleted):
            self._touched[id(it)] = it
        for it in session.dirty:
            if session.is_modified(it):
                self._touched[id(it)] = it
