"""Alembic helpers for migrations that add or remove compiled check constraints.

Inside a migration::

    compiled = registry.compile(Base, dialect=op.get_bind().dialect, sink=AlembicSink(op))

and in ``downgrade``::

    drop_check_constraints(op, compiled)
"""

import logging
from collections.abc import Sequence

from alembic.operations import Operations
from sqlalchemy import Table

from check_constraints.registry import CompiledConstraint

logger = logging.getLogger(__name__)


class AlembicSink:
    def __init__(self, op: Operations) -> None:
        self.op = op

    def add_check_constraint(self, table: Table, name: str, predicate: str) -> None:
        self.op.create_check_constraint(name, table.name, predicate, schema=table.schema)
        logger.info("Created check constraint %s on %s", name, table.name)


def drop_check_constraints(op: Operations, compiled: Sequence[CompiledConstraint]) -> None:
    for constraint in reversed(compiled):
        op.drop_constraint(
            constraint.name, constraint.table, type_="check", schema=constraint.schema_name
        )
        logger.info("Dropped check constraint %s on %s", constraint.name, constraint.table)
