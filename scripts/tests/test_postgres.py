"""Integration tests for the PostgreSQL repository.

Targets a real PostgreSQL server configured through POSTGRES_* env vars.
"""

import pytest
from dotenv import load_dotenv

from crossquery import SearchEngine
from crossquery.dbs.postgres import PostgresRepository
from crossquery.exceptions import BackendExecutionError, MissingConfigError
from crossquery.schema import FilterCriteria, PageCriteria, SearchCriteria, SortCriteria
from scripts.backend import SAMPLE_ROWS, OperatingSystem, drop_postgres, seed_postgres

load_dotenv()


@pytest.fixture(scope="module")
def postgres_engine():
    repository = PostgresRepository(OperatingSystem, table_name="test_crossquery_os")
    try:
        seed_postgres(repository, SAMPLE_ROWS)
    except (MissingConfigError, BackendExecutionError) as e:
        pytest.skip(f"PostgreSQL not available: {e}")

    engine = SearchEngine()
    engine.register_entity(OperatingSystem, repository)
    yield engine

    drop_postgres(repository)


def ids(engine, *filters, **kwargs):
    result = engine.search(SearchCriteria(filters=list(filters), **kwargs), OperatingSystem)
    return sorted(item.id for item in result.content)


class TestPostgresSearch:
    def test_contains_ignores_case(self, postgres_engine):
        assert ids(postgres_engine, FilterCriteria(key="name", operator="contains", value="WIN")) == [1, 6]

    def test_like_wildcards_are_literal(self, postgres_engine):
        assert ids(postgres_engine, FilterCriteria(key="name", operator="contains", value="%")) == []
        assert ids(postgres_engine, FilterCriteria(key="version", operator="starts_with", value="_")) == []

    def test_whole_day(self, postgres_engine):
        assert ids(postgres_engine, FilterCriteria(key="release_date", value="2024-03-15")) == [3, 4]

    def test_blank(self, postgres_engine):
        assert ids(postgres_engine, FilterCriteria(key="kernel", operator="blank")) == [5, 6]
        assert ids(postgres_engine, FilterCriteria(key="version", operator="blank")) == [5]

    def test_empty_in(self, postgres_engine):
        assert ids(postgres_engine, FilterCriteria(key="name", operator="in", values=[])) == []
        assert len(ids(postgres_engine, FilterCriteria(key="name", operator="not_in", values=[]))) == 6

    def test_sorted_page(self, postgres_engine):
        result = postgres_engine.search(
            SearchCriteria(sorts=[SortCriteria(key="usages", direction="desc")], page=PageCriteria(number=1, size=2)),
            OperatingSystem,
        )
        assert [item.id for item in result.content] == [2, 6]
        assert result.total_elements == 6

    def test_unknown_column_is_a_backend_error(self, postgres_engine):
        with pytest.raises(BackendExecutionError):
            postgres_engine.search(SearchCriteria(sorts=[SortCriteria(key="colour")]), OperatingSystem)
        # The connection stays usable after the failed statement
        assert ids(postgres_engine, FilterCriteria(key="id", value="1")) == [1]
