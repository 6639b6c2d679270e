from typing import cast

from sqlalchemy import text
from sqlalchemy.orm import Session


def insert_person(session: Session, name: str) -> int:
    session.execute(text("INSERT INTO person (name) VALUES (:name)"), dict(name=name))
    [[person_id]] = session.execute(
        text("SELECT max(id) FROM person WHERE name=:name"), dict(name=name)
    )
    session.commit()

    return cast(int, person_id)


def select_people(session: Session) -> list[tuple[int, str]]:
    rows = session.execute(text("SELECT id, name FROM person ORDER BY id"))
    return [(row.id, row.name) for row in rows]
