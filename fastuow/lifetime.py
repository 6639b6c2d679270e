"""객체 라이프타임(Lifestyle)을 관리하는 의존성 주입 컨테이너 모듈.

지원하는 라이프스타일:

- ``singleton``: 처음 요청될 때 한번 생성되어 컨테이너가 닫힐 때까지(프로세스 종료)
  재사용됩니다.
- ``scoped``: :meth:`Container.begin_scope` 로 명시적으로 연 스코프 안에서는 같은
  인스턴스를 받고, 스코프가 닫히면 ``close()`` 됩니다. 스코프 밖에서 요청하면
  :class:`.ConfigurationError` 가 발생합니다.
- ``transient``: 요청할 때마다 새로 생성됩니다.

의존성은 팩토리 파라메터 이름으로 주입합니다. 예를 들어 ``def __init__(self, uow,
repo)`` 라면 ``uow``, ``repo`` 라는 이름으로 등록된 객체가 주입됩니다.

Example: ::

    container = Container()
    container.register("uow", make_uow, Lifestyle.SCOPED)
    container.register("repo", PersonRepository)

    with container.begin_scope():
        repo = container.resolve("repo")
"""
from __future__ import annotations

import threading
from contextlib import AbstractContextManager
from contextvars import ContextVar, Token
from dataclasses import dataclass
from enum import Enum
from inspect import Parameter, signature
from typing import Any, Callable, Mapping, Optional

from fastuow.core import ConfigurationError, get_logger

logger = get_logger("fastuow.lifetime")

_active_scopes: ContextVar[Mapping[Container, Scope]] = ContextVar(
    "fastuow_active_scopes", default={}
)
"""컨테이너 별 활성 스코프. 값은 복사해서 바꾸고 직접 수정하지 않습니다."""

_resolving: ContextVar[tuple[tuple[Container, str], ...]] = ContextVar(
    "fastuow_resolving", default=()
)
"""현재 생성중인 ``(컨테이너, 이름)`` 체인. 순환 의존성 검사에 사용합니다."""


class Lifestyle(str, Enum):
    SINGLETON = "singleton"
    SCOPED = "scoped"
    TRANSIENT = "transient"


@dataclass
class Registration:
    name: str
    factory: Callable[..., Any]
    lifestyle: Lifestyle
    params: Mapping[str, Parameter]
    """팩토리 파라메터 캐시. 이름에 따른 Dependency Injection을 위해 사용합니다."""


def close_all(instances: list[Any]) -> None:
    """인스턴스들을 생성 역순으로 ``close()`` 합니다.

    중간에 실패하더라도 나머지는 모두 닫고, 첫번째 에러를 다시 발생시킵니다.
    """
    error: Optional[Exception] = None
    for instance in reversed(instances):
        close = getattr(instance, "close", None)
        if not callable(close):
            continue
        try:
            close()
        except Exception as ex:  # pylint: disable=broad-except
            logger.exception("Failed to close %r", instance)
            error = error or ex
    if error:
        raise error


class Scope(AbstractContextManager["Scope"]):
    """논리적 작업 단위의 라이프타임 경계.

    ``with`` 블록에 있는 동안 활성 스코프가 되며, 블록을 빠져나가면 이전 스코프로
    돌아갑니다. 중첩된 스코프는 부모 스코프와 인스턴스를 공유하지 않습니다.
    """

    def __init__(self, container: Container):
        self.container = container
        self.instances: dict[str, Any] = {}
        self.closed = False
        self._token: Optional[Token[Mapping[Container, Scope]]] = None

    def __repr__(self):
        return f"Scope[{id(self):#x}, {list(self.instances)}]"

    def __enter__(self) -> Scope:
        scopes = dict(_active_scopes.get())
        scopes[self.container] = self
        self._token = _active_scopes.set(scopes)
        logger.debug("scope opened: %r", self)
        return self

    def __exit__(self, *args: Any) -> None:
        try:
            self.close()
        finally:
            if self._token:
                _active_scopes.reset(self._token)
                self._token = None

    def close(self) -> None:
        """스코프 인스턴스들을 닫습니다. 두번째 호출부터는 아무 일도 하지 않습니다."""
        if self.closed:
            return
        self.closed = True
        logger.debug("scope closing: %r", self)
        close_all(list(self.instances.values()))


class Container:
    """라이프스타일에 따라 인스턴스를 만들어 주는 의존성 주입 컨테이너."""

    def __init__(self) -> None:
        self.registrations: dict[str, Registration] = {}
        self.singletons: dict[str, Any] = {}
        self.closed = False
        self._lock = threading.RLock()

    def __repr__(self):
        return f"Container[{list(self.registrations)}]"

    def __getitem__(self, name: str) -> Any:
        return self.resolve(name)

    def register(
        self,
        name: str,
        factory: Callable[..., Any],
        lifestyle: Lifestyle = Lifestyle.TRANSIENT,
    ) -> None:
        """`factory` 를 `name` 으로 등록합니다."""
        # 이미 등록된 팩토리가 덮어씌워지지 않도록 방지
        if name in self.registrations:
            raise ConfigurationError(f"already registered: {name!r}")
        self.registrations[name] = Registration(
            name, factory, Lifestyle(lifestyle), signature(factory).parameters
        )

    @property
    def scope(self) -> Optional[Scope]:
        """현재 활성화된 스코프. 없으면 ``None``."""
        return _active_scopes.get().get(self)

    def begin_scope(self) -> Scope:
        """새 스코프를 만듭니다. ``with`` 블록과 함께 사용하세요."""
        if self.closed:
            raise ConfigurationError(f"{self!r} is already closed")
        return Scope(self)

    def resolve(self, name: str) -> Any:
        """`name` 으로 등록된 객체를 라이프스타일에 맞게 리턴합니다.

        Raises:
            ConfigurationError: 등록되지 않은 이름, 순환 의존성, 스코프 밖에서의
                ``scoped`` 요청, ``singleton`` 이 ``scoped`` 에 의존하는 경우.
        """
        if self.closed:
            raise ConfigurationError(f"{self!r} is already closed")

        reg = self.registrations.get(name)
        if not reg:
            raise ConfigurationError(f"no registration for {name!r}")

        chain = tuple(n for c, n in _resolving.get() if c is self)
        if name in chain:
            raise ConfigurationError(
                f"circular dependency: {' -> '.join(chain + (name,))}"
            )
        if reg.lifestyle is Lifestyle.SCOPED:
            captive = next(
                (
                    n
                    for n in chain
                    if self.registrations[n].lifestyle is Lifestyle.SINGLETON
                ),
                None,
            )
            if captive:
                raise ConfigurationError(
                    f"lifestyle mismatch: singleton {captive!r} depends on"
                    f" scoped {name!r}"
                )

        token = _resolving.set(_resolving.get() + ((self, name),))
        try:
            if reg.lifestyle is Lifestyle.SINGLETON:
                return self._get_singleton(reg)
            if reg.lifestyle is Lifestyle.SCOPED:
                return self._get_scoped(reg)
            return self._create(reg)
        finally:
            _resolving.reset(token)

    def close(self) -> None:
        """싱글톤 인스턴스들을 닫습니다. 프로세스 종료 시점에 호출합니다."""
        with self._lock:
            if self.closed:
                return
            self.closed = True
            instances = list(self.singletons.values())
            self.singletons.clear()
        close_all(instances)

    def _get_singleton(self, reg: Registration) -> Any:
        with self._lock:
            if reg.name not in self.singletons:
                self.singletons[reg.name] = self._create(reg)
                logger.debug("singleton created: %s", reg.name)
            return self.singletons[reg.name]

    def _get_scoped(self, reg: Registration) -> Any:
        scope = self.scope
        if scope is None or scope.closed:
            raise ConfigurationError(
                f"{reg.name!r} is registered as scoped,"
                " but it was requested outside of an active scope"
            )
        if reg.name not in scope.instances:
            scope.instances[reg.name] = self._create(reg)
        return scope.instances[reg.name]

    def _create(self, reg: Registration) -> Any:
        """팩토리의 파라메터를 보고 적절한 의존성을 주입하여 팩토리를 호출합니다."""
        kwargs = dict[str, Any]()
        for pname, param in reg.params.items():
            if param.kind in (Parameter.VAR_POSITIONAL, Parameter.VAR_KEYWORD):
                continue
            if pname in self.registrations:
                kwargs[pname] = self.resolve(pname)
            elif param.default is Parameter.empty:
                raise ConfigurationError(
                    f"missing dependency {pname!r} for {reg.name!r}"
                )
        return reg.factory(**kwargs)
