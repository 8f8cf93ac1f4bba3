"""Pytest configuration and fixtures for search engine tests."""

import os
from datetime import datetime
from typing import Annotated, ClassVar, List, Optional

import pytest
from dotenv import load_dotenv
from pydantic import BaseModel

from crossquery.engine import SearchEngine
from crossquery.metadata import SearchableExclude
from mock.mock_backend import InMemoryRepository

# Load environment variables
load_dotenv()


class OperatingSystem(BaseModel):
    """Sample entity searched across every backend."""

    kind: ClassVar[str] = "operating_system"

    id: Optional[int] = None
    name: str
    version: str
    kernel: Optional[str] = None
    release_date: datetime
    usages: int = 0
    lts: bool = False
    tags: List[str] = []
    internal_notes: Annotated[str, SearchableExclude()] = ""


@pytest.fixture(scope="session")
def os_type():
    return OperatingSystem


@pytest.fixture
def os_rows():
    """Sample rows (raw dicts, native values)."""
    return [
        {
            "id": 1,
            "name": "Windows",
            "version": "11",
            "kernel": "NT 10.0",
            "release_date": datetime(2021, 10, 5, 9, 0, 0),
            "usages": 1500,
            "lts": False,
        },
        {
            "id": 2,
            "name": "Ubuntu",
            "version": "24.04 LTS",
            "kernel": "Linux 6.8",
            "release_date": datetime(2024, 4, 25, 0, 0, 0),
            "usages": 800,
            "lts": True,
        },
        {
            "id": 3,
            "name": "Debian",
            "version": "12",
            "kernel": "Linux 6.1",
            "release_date": datetime(2024, 3, 15, 23, 59, 59, 999999),
            "usages": 450,
            "lts": True,
        },
        {
            "id": 4,
            "name": "macOS",
            "version": "Sequoia",
            "kernel": "Darwin 24.0",
            "release_date": datetime(2024, 3, 15, 0, 0, 0),
            "usages": 900,
            "lts": False,
        },
        {
            "id": 5,
            "name": "FreeBSD",
            "version": "",
            "kernel": None,
            "release_date": datetime(2024, 3, 16, 0, 0, 0),
            "usages": 40,
            "lts": False,
        },
        {
            "id": 6,
            "name": "Windows Server",
            "version": "2022",
            "release_date": datetime(2021, 8, 18, 12, 30, 0),
            "usages": 700,
            "lts": True,
        },
    ]


@pytest.fixture
def memory_repository(os_rows):
    """In-memory repository seeded with the sample rows."""
    return InMemoryRepository(OperatingSystem, rows=os_rows)


@pytest.fixture
def engine(memory_repository):
    """SearchEngine with OperatingSystem registered on the in-memory repository."""
    search_engine = SearchEngine()
    search_engine.register_entity(OperatingSystem, memory_repository)
    return search_engine


@pytest.fixture
def postgres_credentials():
    """PostgreSQL credentials from environment."""
    dbname = os.getenv("POSTGRES_DBNAME")
    if not dbname:
        pytest.skip("POSTGRES_DBNAME not set")
    return {
        "host": os.getenv("POSTGRES_HOST", "localhost"),
        "port": os.getenv("POSTGRES_PORT", "5432"),
        "dbname": dbname,
        "user": os.getenv("POSTGRES_USER", "postgres"),
        "password": os.getenv("POSTGRES_PASSWORD", "postgres"),
    }
