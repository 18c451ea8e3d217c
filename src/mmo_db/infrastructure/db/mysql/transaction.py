from __future__ import annotations

from collections.abc import Callable
from typing import Optional, TypeVar

from sqlalchemy.orm import sessionmaker

from .connection import get_session_factory
from .query import Command

T = TypeVar("T")


class TransactionCoordinator:
    """Runs a unit of work on one connection inside one transaction.

    The transaction commits when the unit of work returns and rolls back when
    it raises; the original exception is re-raised.
    """

    def __init__(self, session_factory: Optional[sessionmaker] = None) -> None:
        self._session_factory = session_factory

    @property
    def session_factory(self) -> sessionmaker:
        if self._session_factory is None:
            self._session_factory = get_session_factory()
        return self._session_factory

    def run(self, unit_of_work: Callable[[Command], T]) -> T:
        with self.session_factory.begin() as session:
            return unit_of_work(Command(session))
