from fastuow.bootstrap import bootstrap  # noqa
from fastuow.config import FastUoW  # noqa
from fastuow.core import (  # noqa
    ConfigurationError,
    FastUoWError,
    NotFoundError,
    PersistenceError,
)
from fastuow.domain import Person  # noqa
from fastuow.lifetime import Container, Lifestyle, Scope  # noqa
from fastuow.repo import PersonRepository, Repository  # noqa
from fastuow.schema import PersonModel  # noqa
from fastuow.services import PersonService  # noqa
from fastuow.uow import SqlAlchemyUnitOfWork  # noqa
