"""Concrete adapter for PostgreSQL.

This module provides the relational implementation of the EntityRepository
interface: criteria are lowered to a parameterized ``SELECT`` plus a matching
``SELECT COUNT(*)`` and run through psycopg2.

Key Features:
    - Lazy connection initialization to PostgreSQL
    - RealDictCursor rows mapped onto the entity type
    - Case-insensitive matching via UPPER(...) LIKE UPPER(...)
    - LIMIT/OFFSET paging with an exact total count
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

import psycopg2
import psycopg2.extras

from crossquery.abc import EntityRepository
from crossquery.exceptions import BackendExecutionError, MissingConfigError
from crossquery.querydsl.compilers.postgres import PostgresWhereCompiler, postgres_where
from crossquery.querydsl.compilers.utils import quote_identifier
from crossquery.schema import SearchCriteria, SortCriteria
from crossquery.settings import settings as api_settings
from crossquery.types import EntityType, Row
from crossquery.utils import default_collection_name


@dataclass(frozen=True)
class SqlQuery:
    """A compiled search: the page query and the count query with their parameters."""

    sql: str
    params: Tuple[Any, ...] = ()
    count_sql: str = ""
    count_params: Tuple[Any, ...] = field(default_factory=tuple)


class PostgresRepository(EntityRepository):
    """Entity repository for PostgreSQL.

    Attributes:
        table_name: Table holding the entity (snake_case class name by default)
        schema: Optional schema qualifying the table
    """

    backend = "postgres"
    where_compiler: PostgresWhereCompiler = postgres_where

    def __init__(
        self,
        entity_type: EntityType,
        table_name: Optional[str] = None,
        schema: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(entity_type, **kwargs)
        self.table_name = table_name or default_collection_name(entity_type)
        self.schema = schema if schema is not None else api_settings.POSTGRES_SCHEMA

    @property
    def client(self) -> Any:
        """Lazily initialize and return the PostgreSQL connection.

        Raises:
            MissingConfigError: If POSTGRES_DBNAME is not configured
            BackendExecutionError: If the connection fails
        """
        if self._client is None:
            dbname = api_settings.POSTGRES_DBNAME
            if not dbname:
                raise MissingConfigError(
                    "POSTGRES_DBNAME is not set. Set it via environment variable or .env file.",
                    config_key="POSTGRES_DBNAME",
                    adapter="Postgres",
                )
            try:
                self._client = psycopg2.connect(
                    dbname=dbname,
                    user=api_settings.POSTGRES_USER,
                    password=api_settings.POSTGRES_PASSWORD,
                    host=api_settings.POSTGRES_HOST,
                    port=api_settings.POSTGRES_PORT,
                )
                self.logger.message("PostgreSQL connection established (db=%s).", dbname)
            except psycopg2.OperationalError as e:
                raise BackendExecutionError(
                    "PostgreSQL connection failed",
                    backend=self.backend,
                    database=dbname,
                    host=api_settings.POSTGRES_HOST,
                    port=api_settings.POSTGRES_PORT,
                    original_error=str(e),
                ) from e
        return self._client

    @property
    def qualified_table(self) -> str:
        name = f"{self.schema}.{self.table_name}" if self.schema else self.table_name
        return quote_identifier(name)

    # ------------------------------------------------------------------
    # Search pipeline
    # ------------------------------------------------------------------

    def order_by(self, sorts: List[SortCriteria]) -> str:
        if not sorts:
            return ""
        clauses = [f"{quote_identifier(s.key)} {'DESC' if s.descending else 'ASC'}" for s in sorts]
        return " ORDER BY " + ", ".join(clauses)

    def compile(self, criteria: SearchCriteria) -> SqlQuery:
        """Lower criteria into a page query and a count query."""
        where_sql, params = self.where_compiler.to_where(self.build_predicate(criteria))
        where_clause = f" WHERE {where_sql}" if where_sql else ""
        page = criteria.page
        sql = (
            f"SELECT * FROM {self.qualified_table}{where_clause}"
            f"{self.order_by(criteria.sorts)} LIMIT %s OFFSET %s"
        )
        return SqlQuery(
            sql=sql,
            params=tuple(params) + (page.size, page.offset),
            count_sql=f"SELECT COUNT(*) AS total FROM {self.qualified_table}{where_clause}",
            count_params=tuple(params),
        )

    def execute(self, query: SqlQuery) -> Tuple[List[Row], int]:
        """Run the count and page queries on a RealDictCursor."""
        try:
            with self.client.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cursor:
                cursor.execute(query.count_sql, query.count_params)
                count_row = cursor.fetchone()
                total = int(count_row["total"]) if count_row else 0
                cursor.execute(query.sql, query.params)
                rows = [dict(row) for row in cursor.fetchall()]
        except psycopg2.Error as e:
            # Ensure aborted transaction does not poison subsequent searches
            try:
                self.client.rollback()
            except psycopg2.Error:
                self.logger.warning("Rollback after failed search on %s failed", self.qualified_table)
            raise BackendExecutionError(
                "PostgreSQL query failed",
                backend=self.backend,
                table=self.table_name,
                original_error=str(e),
            ) from e
        self.logger.debug("SQL: %s %s -> %d rows of %d", query.sql, query.params, len(rows), total)
        return rows, total
