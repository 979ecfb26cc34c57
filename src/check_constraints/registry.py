"""Build-time registry of declared check constraints and the pass that compiles them.

A :class:`ConstraintRegistry` is created alongside the schema it describes.
Column declarations register descriptors against their entity (a mapped class
or a Core ``Table``); once every table is defined, :meth:`ConstraintRegistry.compile`
runs exactly once and hands one named ``CHECK`` predicate per descriptor to a
sink, which by default attaches it to the SQLAlchemy ``Table``.
"""

import logging
import threading
from collections.abc import Iterator, Sequence
from enum import StrEnum
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict
from sqlalchemy import CheckConstraint, MetaData, Table
from sqlalchemy.engine import Dialect
from sqlalchemy.orm import DeclarativeBase, Mapper
from sqlalchemy.orm import registry as MapperRegistry

from check_constraints.context import compile_entity_var
from check_constraints.descriptors import ConstraintDescriptor
from check_constraints.dialects import resolve_dialect
from check_constraints.domain import ColumnRef
from check_constraints.errors import RegistryClosedError, UnresolvedColumnError

logger = logging.getLogger(__name__)

Entity = type | Table
Schema = type[DeclarativeBase] | MapperRegistry | MetaData


class RegistryPhase(StrEnum):
    OPEN = "open"
    COMPILED = "compiled"


class CompiledConstraint(BaseModel):
    model_config = ConfigDict(frozen=True)

    table: str
    schema_name: str | None = None
    name: str
    predicate: str


class CheckConstraintSink(Protocol):
    def add_check_constraint(self, table: Table, name: str, predicate: str) -> None: ...


class TableSink:
    """Attaches compiled predicates to their ``Table`` so ``create_all`` emits them."""

    def __init__(self) -> None:
        self.constraints: list[CheckConstraint] = []

    def add_check_constraint(self, table: Table, name: str, predicate: str) -> None:
        constraint = CheckConstraint(predicate, name=name)
        table.append_constraint(constraint)
        self.constraints.append(constraint)


def entity_label(entity: Entity) -> str:
    if isinstance(entity, Table):
        return entity.fullname
    return entity.__qualname__


def _iter_schema_entities(schema: Schema) -> Iterator[tuple[Entity, list[Table]]]:
    if isinstance(schema, MetaData):
        mappers: Sequence[Mapper[Any]] = ()
        metadata = schema
    elif isinstance(schema, MapperRegistry):
        mappers = list(schema.mappers)
        metadata = schema.metadata
    else:
        mappers = list(schema.registry.mappers)
        metadata = schema.metadata

    # registry.mappers is unordered; sort for a stable emission order.
    for mapper in sorted(
        mappers, key=lambda m: (m.class_.__module__, m.class_.__qualname__)
    ):
        # Joined inheritance spreads a class over its own and its parents' tables.
        yield mapper.class_, [t for t in mapper.tables if isinstance(t, Table)]

    for table in metadata.tables.values():
        yield table, [table]


class ConstraintRegistry:
    def __init__(self) -> None:
        self._descriptors: dict[Entity, list[ConstraintDescriptor]] = {}
        self._phase = RegistryPhase.OPEN
        self._lock = threading.Lock()

    @property
    def phase(self) -> RegistryPhase:
        return self._phase

    def register(self, entity: Entity, descriptor: ConstraintDescriptor) -> None:
        with self._lock:
            if self._phase is RegistryPhase.COMPILED:
                raise RegistryClosedError(
                    f"Cannot register a constraint for {entity_label(entity)!r}: "
                    "the registry has already been compiled"
                )
            self._descriptors.setdefault(entity, []).append(descriptor)

        logger.debug(
            "Registered check constraint",
            extra={"entity": entity_label(entity), "kind": descriptor.kind},
        )

    def descriptors_for(self, entity: Entity) -> tuple[ConstraintDescriptor, ...]:
        return tuple(self._descriptors.get(entity, ()))

    def compile(
        self,
        schema: Schema,
        dialect: Dialect | str | None = None,
        sink: CheckConstraintSink | None = None,
    ) -> list[CompiledConstraint]:
        """Emit one named check constraint per registered descriptor.

        Entities without descriptors are skipped. A descriptor whose column is
        missing from the finalized schema raises :class:`UnresolvedColumnError`
        before anything is handed to the sink. The registry is sealed only
        once the sink has accepted every constraint; if the sink raises, the
        registry stays open and ``compile`` may be retried.
        """
        dialect = resolve_dialect(dialect)
        sink = sink if sink is not None else TableSink()

        with self._lock:
            if self._phase is RegistryPhase.COMPILED:
                raise RegistryClosedError("The registry has already been compiled")

            planned: list[tuple[Table, CompiledConstraint]] = []
            seen: set[Entity] = set()
            for entity, tables in _iter_schema_entities(schema):
                descriptors = self._descriptors.get(entity)
                if not descriptors or entity in seen:
                    continue
                seen.add(entity)

                token = compile_entity_var.set(entity_label(entity))
                try:
                    for descriptor in descriptors:
                        table, resolved = _resolve(entity, tables, descriptor)
                        planned.append(
                            (
                                table,
                                CompiledConstraint(
                                    table=table.name,
                                    schema_name=table.schema,
                                    name=resolved.name(),
                                    predicate=resolved.predicate(dialect),
                                ),
                            )
                        )
                    logger.info(
                        "Compiled %d check constraint(s) for %s",
                        len(descriptors),
                        entity_label(entity),
                    )
                finally:
                    compile_entity_var.reset(token)

            unused = [entity_label(e) for e in self._descriptors if e not in seen]
            if unused:
                logger.warning(
                    "Check constraints registered for entities outside the schema: %s",
                    ", ".join(sorted(unused)),
                )

            for table, compiled in planned:
                sink.add_check_constraint(table, compiled.name, compiled.predicate)

            self._phase = RegistryPhase.COMPILED

        logger.info("Emitted %d check constraint(s)", len(planned))
        return [compiled for _, compiled in planned]


def _resolve(
    entity: Entity, tables: Sequence[Table], descriptor: ConstraintDescriptor
) -> tuple[Table, ConstraintDescriptor]:
    """Find the finalized column and rebind the descriptor to its metadata."""
    ref = descriptor.column
    for table in tables:
        if table.name != ref.table:
            continue
        column = next((c for c in table.columns if c.name == ref.column), None)
        if column is not None:
            finalized = ColumnRef.from_column(column, converter=ref.converter)
            return table, descriptor.model_copy(update={"column": finalized})

    raise UnresolvedColumnError(
        entity=entity_label(entity),
        table=ref.table,
        column=ref.column,
    )
