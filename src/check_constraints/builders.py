import enum
from collections.abc import Callable
from typing import Any, TypeVar

from sqlalchemy import Column, Table
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import ColumnProperty, QueryableAttribute

from check_constraints.descriptors import (
    ConstraintDescriptor,
    EnumMembership,
    LengthBound,
    RegexMatch,
)
from check_constraints.domain import EMAIL_LABEL, EMAIL_REGEX, ColumnRef, ValueConverter
from check_constraints.errors import ConstraintConfigurationError, ConstraintTypeError
from check_constraints.registry import ConstraintRegistry, Entity

T = TypeVar("T", QueryableAttribute[Any], Column[Any])


def resolve_target(target: QueryableAttribute[Any] | Column[Any]) -> tuple[Entity, Column[Any]]:
    """Find the owning entity and the backing column of an ORM attribute or Core column."""
    if isinstance(target, Column):
        table = getattr(target, "table", None)
        if not isinstance(table, Table):
            raise ConstraintConfigurationError(
                f"Column {target.name!r} is not attached to a table"
            )
        return table, target

    if isinstance(target, QueryableAttribute):
        prop = target.property
        if not isinstance(prop, ColumnProperty) or len(prop.columns) != 1:
            raise ConstraintConfigurationError(
                f"{target.class_.__qualname__}.{target.key} is not mapped to a single column"
            )
        column = prop.columns[0]
        if not isinstance(column, Column):
            raise ConstraintConfigurationError(
                f"{target.class_.__qualname__}.{target.key} is not backed by a table column"
            )
        return target.class_, column

    raise ConstraintConfigurationError(f"Cannot attach a check constraint to {target!r}")


def _textual_ref(
    target: QueryableAttribute[Any] | Column[Any], kind: str
) -> tuple[Entity, ColumnRef]:
    entity, column = resolve_target(target)
    ref = ColumnRef.from_column(column)
    if not ref.is_textual:
        raise ConstraintTypeError(
            f"{kind} constraints require a textual column; "
            f"{ref.table}.{ref.column} is {column.type!r}"
        )
    return entity, ref


def has_custom_constraint(
    registry: ConstraintRegistry,
    target: T,
    factory: Callable[[ColumnRef], ConstraintDescriptor],
) -> T:
    entity, column = resolve_target(target)
    descriptor = factory(ColumnRef.from_column(column))
    if not isinstance(descriptor, EnumMembership | RegexMatch | LengthBound):
        raise ConstraintTypeError(
            f"Constraint factory returned {type(descriptor).__name__}, "
            "expected EnumMembership, RegexMatch or LengthBound"
        )
    registry.register(entity, descriptor)
    return target


def has_enum_constraint(
    registry: ConstraintRegistry,
    target: T,
    enum_type: type[enum.Enum] | None = None,
    converter: ValueConverter | None = None,
) -> T:
    """Restrict the column to the members of an enum.

    The enum defaults to the one bound to a SQLAlchemy ``Enum`` column type.
    A plain string ``Enum`` type without an enum class restricts the column to
    its listed values.
    """
    entity, column = resolve_target(target)

    members: tuple[Any, ...]
    if enum_type is not None:
        members = tuple(enum_type)
    elif isinstance(column.type, SQLEnum) and column.type.enum_class is not None:
        members = tuple(column.type.enum_class)
    elif isinstance(column.type, SQLEnum):
        members = tuple(column.type.enums)
    else:
        raise ConstraintTypeError(
            f"Cannot infer the enum type of {column.table.name}.{column.name}; "
            "pass enum_type explicitly"
        )

    if not members:
        raise ConstraintTypeError(f"Enum for {column.table.name}.{column.name} has no members")

    registry.register(
        entity,
        EnumMembership(column=ColumnRef.from_column(column, converter=converter), members=members),
    )
    return target


def has_regex_constraint(
    registry: ConstraintRegistry,
    target: T,
    pattern: str,
    label: str | None = None,
) -> T:
    entity, ref = _textual_ref(target, "Regex")
    registry.register(entity, RegexMatch(column=ref, pattern=pattern, label=label))
    return target


def has_email_constraint(registry: ConstraintRegistry, target: T) -> T:
    return has_regex_constraint(registry, target, EMAIL_REGEX, label=EMAIL_LABEL)


def has_length_constraint(
    registry: ConstraintRegistry,
    target: T,
    max_length: int,
    min_length: int | None = None,
) -> T:
    entity, ref = _textual_ref(target, "Length")
    registry.register(
        entity, LengthBound(column=ref, max_length=max_length, min_length=min_length)
    )
    return target
