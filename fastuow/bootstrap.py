"""애플리케이션 조립(composition root).

UoW, 레포지터리, 서비스를 컨테이너에 등록합니다. 레포지터리와 서비스는
``transient`` 이고 UoW 의 라이프스타일은 설정(:attr:`FastUoW.lifestyle`)을
따릅니다.
"""
from __future__ import annotations

from typing import Optional

from fastuow.config import FastUoW
from fastuow.lifetime import Container
from fastuow.orm import SessionMaker, init_db
from fastuow.repo import PersonRepository
from fastuow.services import PersonService
from fastuow.uow import SqlAlchemyUnitOfWork


def bootstrap(
    config: Optional[FastUoW] = None,
    get_session: Optional[SessionMaker] = None,
) -> Container:
    """설정에 따라 의존성이 등록된 :class:`.Container` 를 리턴합니다.

    Example: ::

        container = bootstrap(FastUoW(lifestyle="scoped"))
        with container.begin_scope():
            service = container.resolve("service")
            service.add(PersonModel(name="TESTE"))
    """
    config = config or FastUoW.load_from_config()
    session_factory = get_session or init_db(config)

    container = Container()
    container.register(
        "uow", lambda: SqlAlchemyUnitOfWork(session_factory), config.lifestyle
    )
    container.register("repo", PersonRepository)
    container.register("service", PersonService)
    return container
