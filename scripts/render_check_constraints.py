import argparse
import importlib
import logging
from typing import Any

from sqlalchemy.schema import AddConstraint

from check_constraints.config import settings
from check_constraints.dialects import resolve_dialect
from check_constraints.logging_config import configure_logging
from check_constraints.registry import ConstraintRegistry, TableSink

logger = logging.getLogger(__name__)


def load_object(path: str) -> Any:
    """Import ``package.module:attribute``."""
    module_name, _, attribute = path.partition(":")
    if not module_name or not attribute:
        raise ValueError(f"Expected 'module:attribute', got {path!r}")
    return getattr(importlib.import_module(module_name), attribute)


def render_statements(
    schema: Any, registry: ConstraintRegistry, dialect_name: str | None = None
) -> list[str]:
    dialect = resolve_dialect(dialect_name)
    sink = TableSink()
    registry.compile(schema, dialect=dialect, sink=sink)
    return [
        f"{str(AddConstraint(constraint).compile(dialect=dialect)).strip()};"
        for constraint in sink.constraints
    ]


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        description="Print ALTER TABLE statements for registered check constraints."
    )
    parser.add_argument("schema", help="Declarative base or MetaData, as module:attribute")
    parser.add_argument("registry", help="ConstraintRegistry, as module:attribute")
    parser.add_argument(
        "--dialect", default=settings.default_dialect, help="Target SQL dialect name"
    )
    args = parser.parse_args(argv)

    configure_logging(
        level=settings.log_level,
        output_format=settings.log_format,
        service_name=settings.log_service_name,
    )

    statements = render_statements(
        load_object(args.schema), load_object(args.registry), args.dialect
    )
    logger.info(f"Rendered {len(statements)} check constraint statement(s).")
    for statement in statements:
        print(statement)


if __name__ == "__main__":
    main()
