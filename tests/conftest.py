import re
from collections.abc import Iterator

import pytest
from sqlalchemy import Engine, create_engine, event
from sqlalchemy.pool import StaticPool

from check_constraints.registry import ConstraintRegistry
from tests.sample_models import SampleSchema, build_sample_schema


@pytest.fixture
def sample_schema() -> SampleSchema:
    return build_sample_schema()


@pytest.fixture
def registry() -> ConstraintRegistry:
    return ConstraintRegistry()


def _sqlite_regexp(pattern: str, value: str | None) -> bool:
    return value is not None and re.search(pattern, value) is not None


@pytest.fixture
def db_engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def register_regexp(dbapi_connection, connection_record) -> None:
        dbapi_connection.create_function("regexp", 2, _sqlite_regexp)

    yield engine
    engine.dispose()
