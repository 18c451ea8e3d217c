"""Parameterized statement execution bound to one open session."""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Sequence

from sqlalchemy import bindparam, text
from sqlalchemy.engine import CursorResult, Row
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql.elements import TextClause

logger = logging.getLogger(__name__)


def quote_identifier(name: str) -> str:
    # backticks are accepted by both MySQL and SQLite
    return f"`{name}`"


class Command:
    """Execute, scalar and row-set statement shapes over the session's transaction.

    Values always travel as named bind parameters; templates are never
    interpolated with data. Failures are logged with the offending template and
    re-raised unchanged.
    """

    def __init__(self, session) -> None:
        self._session = session

    @property
    def session(self):
        return self._session

    @property
    def dialect(self) -> str:
        bind = self._session.get_bind()
        return bind.dialect.name if bind is not None else "mysql"

    def connection(self):
        return self._session.connection()

    def execute(self, statement: str | TextClause, params: Optional[Mapping[str, Any]] = None) -> CursorResult:
        return self._run(statement, params)

    def scalar(self, statement: str | TextClause, params: Optional[Mapping[str, Any]] = None) -> Any:
        return self._run(statement, params).scalar()

    def rows(self, statement: str | TextClause, params: Optional[Mapping[str, Any]] = None) -> List[Row]:
        return list(self._run(statement, params).all())

    def first(self, statement: str | TextClause, params: Optional[Mapping[str, Any]] = None) -> Optional[Row]:
        return self._run(statement, params).first()

    def _run(self, statement: str | TextClause, params: Optional[Mapping[str, Any]]) -> CursorResult:
        clause = statement if isinstance(statement, TextClause) else text(statement)
        bound = dict(params or {})
        try:
            return self._session.execute(clause, bound)
        except SQLAlchemyError:
            statement_text = str(clause).strip()
            logger.exception(
                "Failed to execute query %s",
                statement_text,
                extra={"statement": statement_text, "parameters": sorted(bound)},
            )
            raise


def typed_text(statement: str, **types) -> TextClause:
    """Build a text clause whose named parameters carry explicit SQL types."""
    clause = text(statement)
    if types:
        clause = clause.bindparams(*(bindparam(name, type_=type_) for name, type_ in types.items()))
    return clause


def upsert_statement(
    dialect: str,
    table: str,
    columns: Sequence[str],
    key_columns: Sequence[str],
    **types,
) -> TextClause:
    """INSERT-or-UPDATE on the primary or unique key, for MySQL and SQLite."""
    column_list = ", ".join(quote_identifier(column) for column in columns)
    value_list = ", ".join(f":{column}" for column in columns)
    updated = [column for column in columns if column not in key_columns] or list(columns)
    if dialect == "mysql":
        assignments = ",\n                ".join(
            f"{quote_identifier(column)} = VALUES({quote_identifier(column)})" for column in updated
        )
        statement = f"""
            INSERT INTO {quote_identifier(table)} ({column_list})
            VALUES ({value_list})
            ON DUPLICATE KEY UPDATE
                {assignments}
            """
    else:
        assignments = ",\n                ".join(
            f"{quote_identifier(column)} = excluded.{quote_identifier(column)}" for column in updated
        )
        conflict = ", ".join(quote_identifier(column) for column in key_columns)
        statement = f"""
            INSERT INTO {quote_identifier(table)} ({column_list})
            VALUES ({value_list})
            ON CONFLICT({conflict}) DO UPDATE SET
                {assignments}
            """
    return typed_text(statement, **types)
