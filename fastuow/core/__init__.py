from ._logging import get_logger  # noqa
from .errors import (  # noqa
    ConfigurationError,
    FastUoWError,
    NotFoundError,
    PersistenceError,
)
from .models import (  # noqa
    AbstractEntitySet,
    AbstractRepository,
    AbstractUnitOfWork,
    Entity,
    Predicate,
)
