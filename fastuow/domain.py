"""도메인 모델."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

NAME_MAX_LENGTH = 100
""":attr:`Person.name` 컬럼의 최대 길이."""


@dataclass
class Person:
    """영속화되는 사람(Pessoa) 엔티티입니다.

    :func:`fastuow.orm.start_mappers` 에서 ``person`` 테이블에 매핑됩니다.
    """

    name: Optional[str] = None

    id: Optional[int] = None  # pylint: disable=invalid-name
    """매핑된 DB가 할당한 고유 ID. 세션 commit이 될 경우에만 값이 부여됩니다."""
