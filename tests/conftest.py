# pylint: disable=redefined-outer-name
"""pytest 에서 사용될 전역 Fixture들을 정의합니다."""
from __future__ import annotations

from typing import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from fastuow.bootstrap import bootstrap
from fastuow.config import FastUoW
from fastuow.lifetime import Container, Lifestyle
from fastuow.orm import SessionMaker, start_mappers
from fastuow.uow import SqlAlchemyUnitOfWork


def memory_sessionmaker() -> SessionMaker:
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    metadata = start_mappers()
    metadata.create_all(engine)
    return sessionmaker(engine)


@pytest.fixture
def get_session() -> SessionMaker:
    """테스트마다 새로 만들어지는 메모리 DB의 Session 팩토리를 리턴합니다."""
    return memory_sessionmaker()


@pytest.fixture
def session(get_session: SessionMaker) -> Generator[Session, None, None]:
    """UoW 와 별개로 DB 상태를 확인하기 위한 세션."""
    session = get_session()
    yield session
    session.close()


@pytest.fixture
def uow(get_session: SessionMaker) -> Generator[SqlAlchemyUnitOfWork, None, None]:
    with SqlAlchemyUnitOfWork(get_session) as uow:
        yield uow


@pytest.fixture
def container(get_session: SessionMaker) -> Generator[Container, None, None]:
    """UoW 가 singleton 으로 등록된 컨테이너 (앱 설정)."""
    container = bootstrap(FastUoW(lifestyle=Lifestyle.SINGLETON), get_session)
    yield container
    container.close()


@pytest.fixture
def scoped_container(get_session: SessionMaker) -> Generator[Container, None, None]:
    """UoW 가 scoped 로 등록된 컨테이너 (웹 요청 단위 설정)."""
    container = bootstrap(FastUoW(lifestyle=Lifestyle.SCOPED), get_session)
    yield container
    container.close()
