from __future__ import annotations

from sqlalchemy.orm import Session

from app.medtrack.models import RegistryCounter


def last_id(s: Session, name: str) -> int:
    counter = s.get(RegistryCounter, name)
    return counter.last_id if counter else 0


def next_id(s: Session, name: str) -> int:
    """
    Advance the named counter and return the new id.
    Call only once every validation for the creation has passed.
    """
    counter = s.get(RegistryCounter, name)
    if counter is None:
        counter = RegistryCounter(name=name, last_id=0)
        s.add(counter)
    counter.last_id += 1
    return counter.last_id
