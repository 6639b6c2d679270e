"""ORM 어댑터 모듈"""
from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Type, cast

from sqlalchemy import Column, Integer, MetaData, String, Table, create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, registry, sessionmaker
from sqlalchemy.pool import Pool
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from fastuow.config import FastUoW
from fastuow.core import get_logger
from fastuow.domain import NAME_MAX_LENGTH, Person

SessionMaker = Callable[[], Session]
"""Session 팩토리 타입."""

InitHook = Callable[[MetaData, registry], Any]
"""사용자 매핑 함수 타입."""

metadata: Optional[MetaData] = None
mapper_registry: Optional[registry] = None

logger = get_logger("fastuow.orm")


def init_mappers(meta: MetaData, mappers: registry) -> MetaData:
    """:class:`.Person` 을 ``person`` 테이블에 매핑합니다."""
    person = Table(
        "person",
        meta,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("name", String(NAME_MAX_LENGTH), nullable=False),
        extend_existing=True,
    )

    mappers.map_imperatively(Person, person)

    return meta


def start_mappers(
    use_exist: bool = True, init_hooks: Optional[list[InitHook]] = None
) -> MetaData:
    """도메인 객체들을 SqlAlchemy ORM 매퍼에 등록합니다.

    매핑은 프로세스 당 한번만 수행됩니다. `use_exist` 가 거짓이면 기존 매핑을
    지우고 다시 등록합니다.
    """
    global metadata, mapper_registry  # pylint: disable=global-statement,invalid-name
    if use_exist and metadata:
        return metadata

    if mapper_registry:
        mapper_registry.dispose()

    metadata = MetaData()
    mapper_registry = registry(metadata=metadata)

    for hook in init_hooks or [init_mappers]:
        hook(metadata, mapper_registry)

    return metadata


def init_engine(
    meta: MetaData,
    url: str,
    connect_args: Optional[dict[str, Any]] = None,
    poolclass: Optional[Type[Pool]] = None,
    show_log: bool = False,
    drop_all: bool = False,
    retries: int = 3,
) -> Engine:
    """ORM Engine을 초기화 합니다.

    저장소가 아직 준비되지 않았을 수 있으므로 ``OperationalError`` 가 발생하면
    `retries` 횟수만큼 지수적으로 기다리며 다시 연결해 봅니다. 연결이 확인되면
    테이블을 생성합니다.
    """
    kwargs: dict[str, Any] = dict(connect_args=connect_args or {}, echo=show_log)
    if poolclass:
        kwargs["poolclass"] = poolclass
    engine = create_engine(url, **kwargs)

    retrying = Retrying(
        stop=stop_after_attempt(retries),
        wait=wait_exponential(max=10),
        retry=retry_if_exception_type(OperationalError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    for attempt in retrying:
        with attempt:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))

    if drop_all:
        meta.drop_all(engine)

    meta.create_all(engine)
    logger.debug("engine initialized: %r", engine.url)

    return engine


def init_db(
    config: Optional[FastUoW] = None,
    db_url: Optional[str] = None,
    drop_all: bool = False,
    init_hooks: Optional[list[InitHook]] = None,
) -> SessionMaker:
    """설정을 읽어 DB 엔진을 초기화하고 Session 팩토리를 리턴합니다."""
    config = config or FastUoW()
    url = db_url or config.get_db_url()
    meta = start_mappers(init_hooks=init_hooks)

    engine = init_engine(
        meta,
        url,
        connect_args=config.get_db_connect_args(url),
        poolclass=config.get_db_poolclass(url),
        show_log=config.show_log,
        drop_all=drop_all,
        retries=config.connect_retries,
    )
    return cast(SessionMaker, sessionmaker(engine))
