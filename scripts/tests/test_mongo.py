"""Integration tests for the MongoDB repository.

Targets a real MongoDB deployment configured through MONGO_URI and MONGO_DATABASE.
"""

import pytest
from dotenv import load_dotenv
from pymongo.errors import PyMongoError

from crossquery import SearchEngine
from crossquery.dbs.mongo import MongoRepository
from crossquery.exceptions import MissingConfigError
from crossquery.schema import FilterCriteria, PageCriteria, SearchCriteria, SortCriteria
from scripts.backend import SAMPLE_ROWS, OperatingSystem, drop_mongo, seed_mongo

load_dotenv()


@pytest.fixture(scope="module")
def mongo_engine():
    repository = MongoRepository(OperatingSystem, collection_name="test_crossquery_os")
    try:
        seed_mongo(repository, SAMPLE_ROWS)
    except (MissingConfigError, PyMongoError) as e:
        pytest.skip(f"MongoDB not available: {e}")

    engine = SearchEngine()
    engine.register_entity(OperatingSystem, repository)
    yield engine

    drop_mongo(repository)


def ids(engine, *filters, **kwargs):
    result = engine.search(SearchCriteria(filters=list(filters), **kwargs), OperatingSystem)
    return sorted(item.id for item in result.content)


class TestMongoSearch:
    def test_contains_ignores_case(self, mongo_engine):
        assert ids(mongo_engine, FilterCriteria(key="name", operator="contains", value="WIN")) == [1, 6]

    def test_regex_characters_are_literal(self, mongo_engine):
        assert ids(mongo_engine, FilterCriteria(key="version", operator="contains", value=".")) == [2]

    def test_whole_day(self, mongo_engine):
        assert ids(mongo_engine, FilterCriteria(key="release_date", value="2024-03-15")) == [3, 4]

    def test_blank(self, mongo_engine):
        assert ids(mongo_engine, FilterCriteria(key="kernel", operator="blank")) == [5, 6]

    def test_full_text(self, mongo_engine):
        assert ids(mongo_engine, full_text="linux") == [2, 3]

    def test_sorted_page(self, mongo_engine):
        result = mongo_engine.search(
            SearchCriteria(sorts=[SortCriteria(key="usages", direction="desc")], page=PageCriteria(number=1, size=2)),
            OperatingSystem,
        )
        assert [item.id for item in result.content] == [2, 6]
        assert result.total_pages == 3
