"""Unified backend search runner.

Seed a small operating-system catalogue into any supported backend and run
the same criteria search flow against it, checking each answer.

Usage examples:
    python scripts/backend.py --backend postgres
    python scripts/backend.py --backend mongo --collection os_demo
    python scripts/backend.py --all-backends

The flow executed:
    1. Unfiltered first page
    2. Case-insensitive CONTAINS
    3. Date-only EQUALS (whole day)
    4. BETWEEN on numbers
    5. IN / NOT_IN
    6. BLANK / NOT_BLANK
    7. Full-text across text fields
    8. Multi-key sort with paging
    9. Unsupported operator dropped
    10. Gateway request (camelCase body)
"""

from __future__ import annotations

import argparse
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel

from crossquery import SearchEngine
from crossquery.abc import EntityRepository
from crossquery.exceptions import MissingConfigError
from crossquery.gateway import SearchGateway
from crossquery.schema import FilterCriteria, PageCriteria, SearchCriteria, SortCriteria

DEFAULT_BACKEND = "postgres"
DEFAULT_COLLECTION = "crossquery_demo_os"
BACKENDS = ["postgres", "mongo", "elasticsearch"]


class OperatingSystem(BaseModel):
    id: int
    name: str
    version: str
    kernel: Optional[str] = None
    release_date: datetime
    usages: int = 0
    lts: bool = False


SAMPLE_ROWS: List[Dict[str, Any]] = [
    {"id": 1, "name": "Windows", "version": "11", "kernel": "NT 10.0",
     "release_date": datetime(2021, 10, 5, 9, 0), "usages": 1500, "lts": False},
    {"id": 2, "name": "Ubuntu", "version": "24.04 LTS", "kernel": "Linux 6.8",
     "release_date": datetime(2024, 4, 25), "usages": 800, "lts": True},
    {"id": 3, "name": "Debian", "version": "12", "kernel": "Linux 6.1",
     "release_date": datetime(2024, 3, 15, 23, 59, 59), "usages": 450, "lts": True},
    {"id": 4, "name": "macOS", "version": "Sequoia", "kernel": "Darwin 24.0",
     "release_date": datetime(2024, 3, 15), "usages": 900, "lts": False},
    {"id": 5, "name": "FreeBSD", "version": "", "kernel": None,
     "release_date": datetime(2024, 3, 16), "usages": 40, "lts": False},
    {"id": 6, "name": "Windows Server", "version": "2022", "kernel": None,
     "release_date": datetime(2021, 8, 18, 12, 30), "usages": 700, "lts": True},
]


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Unified backend search runner")
    parser.add_argument(
        "--backend",
        choices=BACKENDS,
        default=DEFAULT_BACKEND,
        help="Storage backend adapter (default: postgres)",
    )
    parser.add_argument(
        "--all-backends",
        action="store_true",
        help="Run the flow against all supported backends",
    )
    parser.add_argument(
        "--collection",
        default=DEFAULT_COLLECTION,
        help=f"Table, collection or index holding the sample rows (default: {DEFAULT_COLLECTION})",
    )
    parser.add_argument(
        "--keep",
        action="store_true",
        help="Keep the seeded data after the run",
    )
    return parser.parse_args(argv)


# ---------------------------------------------------------------------------
# Seeding
# ---------------------------------------------------------------------------


def seed_postgres(repository: Any, rows: List[Dict[str, Any]]) -> None:
    table = repository.qualified_table
    with repository.client.cursor() as cursor:
        cursor.execute(f"DROP TABLE IF EXISTS {table}")
        cursor.execute(
            f"CREATE TABLE {table} ("
            "id INTEGER PRIMARY KEY, name TEXT NOT NULL, version TEXT NOT NULL, kernel TEXT, "
            "release_date TIMESTAMP NOT NULL, usages INTEGER NOT NULL, lts BOOLEAN NOT NULL)"
        )
        for row in rows:
            cursor.execute(
                f"INSERT INTO {table} (id, name, version, kernel, release_date, usages, lts) "
                "VALUES (%(id)s, %(name)s, %(version)s, %(kernel)s, %(release_date)s, %(usages)s, %(lts)s)",
                row,
            )
    repository.client.commit()


def drop_postgres(repository: Any) -> None:
    with repository.client.cursor() as cursor:
        cursor.execute(f"DROP TABLE IF EXISTS {repository.qualified_table}")
    repository.client.commit()


def seed_mongo(repository: Any, rows: List[Dict[str, Any]]) -> None:
    repository.collection.drop()
    repository.collection.insert_many([{"_id": row["id"], **row} for row in rows])


def drop_mongo(repository: Any) -> None:
    repository.collection.drop()


def seed_elasticsearch(repository: Any, rows: List[Dict[str, Any]]) -> None:
    client = repository.client
    client.indices.delete(index=repository.index_name, ignore_unavailable=True)
    client.indices.create(
        index=repository.index_name,
        mappings={
            "properties": {
                "id": {"type": "integer"},
                "name": {"type": "text", "fields": {"keyword": {"type": "keyword"}}},
                "version": {"type": "text", "fields": {"keyword": {"type": "keyword"}}},
                "kernel": {"type": "text", "fields": {"keyword": {"type": "keyword"}}},
                "release_date": {"type": "date"},
                "usages": {"type": "integer"},
                "lts": {"type": "boolean"},
            }
        },
    )
    for row in rows:
        client.index(index=repository.index_name, id=str(row["id"]), document=row)
    client.indices.refresh(index=repository.index_name)


def drop_elasticsearch(repository: Any) -> None:
    repository.client.indices.delete(index=repository.index_name, ignore_unavailable=True)


def get_repository(backend: str, collection: str) -> EntityRepository:
    if backend == "postgres":
        from crossquery.dbs.postgres import PostgresRepository

        return PostgresRepository(OperatingSystem, table_name=collection)
    if backend == "mongo":
        from crossquery.dbs.mongo import MongoRepository

        return MongoRepository(OperatingSystem, collection_name=collection)
    if backend == "elasticsearch":
        from crossquery.dbs.elasticsearch import ElasticsearchRepository

        return ElasticsearchRepository(OperatingSystem, index_name=collection)
    raise ValueError(f"Unsupported backend: {backend}")


SEEDERS: Dict[str, Callable[[Any, List[Dict[str, Any]]], None]] = {
    "postgres": seed_postgres,
    "mongo": seed_mongo,
    "elasticsearch": seed_elasticsearch,
}

DROPPERS: Dict[str, Callable[[Any], None]] = {
    "postgres": drop_postgres,
    "mongo": drop_mongo,
    "elasticsearch": drop_elasticsearch,
}


# ---------------------------------------------------------------------------
# Flow
# ---------------------------------------------------------------------------


def run_flow(engine: SearchEngine) -> tuple[int, int, int]:
    """Run the search checks and track pass/fail statistics.

    Returns:
        (passed, total, failed)
    """
    passed = 0
    failed = 0
    total = 0

    def test(name: str, func):
        nonlocal passed, failed, total
        total += 1
        try:
            func()
            passed += 1
            print(f"✓ [{total}] {name}")
            return True
        except Exception as e:
            failed += 1
            print(f"✗ [{total}] {name}: {e}")
            return False

    def ids(*filters: FilterCriteria, **kwargs: Any) -> List[int]:
        result = engine.search(SearchCriteria(filters=list(filters), **kwargs), OperatingSystem)
        return sorted(item.id for item in result.content)

    def test_unfiltered():
        result = engine.search(SearchCriteria(page=PageCriteria(number=0, size=4)), OperatingSystem)
        assert result.total_elements == 6, result.total_elements
        assert result.total_pages == 2 and len(result.content) == 4

    def test_contains():
        assert ids(FilterCriteria(key="name", operator="contains", value="win")) == [1, 6]

    def test_whole_day():
        assert ids(FilterCriteria(key="release_date", value="2024-03-15")) == [3, 4]

    def test_between():
        assert ids(FilterCriteria(key="usages", operator="between", value="450", value_to="900")) == [2, 3, 4, 6]

    def test_in_not_in():
        assert ids(FilterCriteria(key="usages", operator="in", values=["40", "800"])) == [2, 5]
        assert ids(FilterCriteria(key="name", operator="not_in", values=["Windows", "Debian"])) == [2, 4, 5, 6]

    def test_blank():
        assert ids(FilterCriteria(key="kernel", operator="blank")) == [5, 6]
        assert ids(FilterCriteria(key="version", operator="blank")) == [5]
        assert ids(FilterCriteria(key="version", operator="not_blank")) == [1, 2, 3, 4, 6]

    def test_full_text():
        assert ids(full_text="linux") == [2, 3]

    def test_sorted_page():
        criteria = SearchCriteria(
            sorts=[SortCriteria(key="lts", direction="desc"), SortCriteria(key="usages")],
            page=PageCriteria(number=1, size=4),
        )
        result = engine.search(criteria, OperatingSystem)
        assert [item.id for item in result.content] == [4, 1], [item.id for item in result.content]
        assert result.last

    def test_dropped_operator():
        assert len(ids(FilterCriteria(key="name", operator="less_than", value="M"))) == 6

    def test_gateway():
        gateway = SearchGateway(engine)
        result = gateway.search(
            {"filters": [{"key": "lts", "value": "TRUE"}], "fullText": "windows", "page": {"size": 10}},
            OperatingSystem,
        )
        assert [item.id for item in result.content] == [6]

    test("Unfiltered first page", test_unfiltered)
    test("CONTAINS is case-insensitive", test_contains)
    test("Date-only EQUALS covers the whole day", test_whole_day)
    test("BETWEEN is inclusive", test_between)
    test("IN / NOT_IN", test_in_not_in)
    test("BLANK / NOT_BLANK", test_blank)
    test("Full-text across text fields", test_full_text)
    test("Multi-key sort with paging", test_sorted_page)
    test("Unsupported operator dropped", test_dropped_operator)
    test("Gateway request", test_gateway)

    print("\n" + "=" * 60)
    print(f"Test Summary: {passed} passed / {total} total ({failed} failed)")
    print("=" * 60)
    if failed > 0:
        print(f"⚠ {failed} test(s) failed")
    else:
        print("✓ All tests passed!")
    return passed, total, failed


def main() -> None:
    load_dotenv()
    args = parse_args()
    backends = [args.backend] if not args.all_backends else BACKENDS

    summaries: list[tuple[str, int, int]] = []

    for backend in backends:
        try:
            repository = get_repository(backend, args.collection)
            SEEDERS[backend](repository, SAMPLE_ROWS)
        except MissingConfigError as e:
            print(f"{backend} config error:", e)
            continue
        except Exception as e:
            print(f"Failed to seed {backend}:", e)
            continue

        engine = SearchEngine()
        engine.register_entity(OperatingSystem, repository)
        print(f"Initialized SearchEngine with adapter '{repository.__class__.__name__}'.")
        try:
            passed, total, _failed = run_flow(engine)
        finally:
            if not args.keep:
                DROPPERS[backend](repository)
        print(f"Summary: {backend}: {passed}/{total}")
        summaries.append((backend, passed, total))

    if len(summaries) > 1:
        print("\nConsolidated Summary:")
        for backend, passed, total in summaries:
            print(f" - {backend}: {passed}/{total}")
    elif len(summaries) == 1:
        b, p, t = summaries[0]
        print(f"\nFinal Summary: {b}: {p}/{t}")


if __name__ == "__main__":
    main()
