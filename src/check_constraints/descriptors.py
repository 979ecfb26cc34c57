import enum
from typing import Annotated, Any, Literal, assert_never

from pydantic import BaseModel, ConfigDict, Field, model_validator
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.engine import Dialect

from check_constraints.config import settings
from check_constraints.dialects import (
    quote_identifier,
    regex_match,
    resolve_dialect,
    value_literal,
)
from check_constraints.domain import ColumnRef


class _Descriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    column: ColumnRef = Field(description="The column the constraint applies to")
    label: str | None = Field(
        default=None, description="Suffix that disambiguates constraints of the same kind"
    )

    def name(self, prefix: str | None = None) -> str:
        return constraint_name(self, prefix=prefix)  # type: ignore[arg-type]

    def predicate(self, dialect: Dialect | str | None = None) -> str:
        return render_predicate(self, dialect=dialect)  # type: ignore[arg-type]


class EnumMembership(_Descriptor):
    kind: Literal["Enum"] = "Enum"
    members: tuple[Any, ...] = Field(
        min_length=1, description="Allowed model values, in declaration order"
    )

    @property
    def allowed_encoded_values(self) -> tuple[Any, ...]:
        return tuple(encode_enum_value(self.column, value) for value in self.members)


class RegexMatch(_Descriptor):
    kind: Literal["Regex"] = "Regex"
    pattern: str = Field(min_length=1, description="POSIX regular expression")


class LengthBound(_Descriptor):
    kind: Literal["Length"] = "Length"
    max_length: int = Field(ge=0, description="Inclusive upper bound on LENGTH(column)")
    min_length: int | None = Field(
        default=None, ge=0, description="Inclusive lower bound on LENGTH(column)"
    )

    @model_validator(mode="after")
    def validate_bounds(self) -> "LengthBound":
        if self.min_length is not None and self.min_length > self.max_length:
            raise ValueError("min_length must not exceed max_length")
        return self


ConstraintDescriptor = Annotated[
    EnumMembership | RegexMatch | LengthBound,
    Field(discriminator="kind"),
]


def encode_enum_value(column: ColumnRef, value: Any) -> Any:
    """Map an enum value to the representation the column stores.

    An explicit converter wins. Otherwise a SQLAlchemy ``Enum`` column stores
    whatever its type maps the member to (the member name unless
    ``values_callable`` says otherwise), and any other column stores the
    member's ``.value``.
    """
    if column.converter is not None:
        return column.converter(value)

    type_ = column.type_
    if isinstance(value, enum.Enum):
        if isinstance(type_, SQLEnum) and type_.enum_class is not None:
            members = list(type_.enum_class)
            if len(type_.enums) != len(members):
                # The type kept aliases (omit_aliases=False); they share a member object.
                members = list(type_.enum_class.__members__.values())
            # The canonical name comes first, so it wins over its aliases.
            lookup = dict(zip(reversed(members), reversed(type_.enums)))
            if value in lookup:
                return lookup[value]
        return value.value
    return value


def constraint_name(descriptor: ConstraintDescriptor, prefix: str | None = None) -> str:
    """Build ``<prefix>_<table>_<column>_<Kind>[_<label>]``.

    A non-blank label is always appended, so an email constraint on
    ``users.email`` is ``CK_users_email_Regex_Email``. Schemas migrated from
    tooling that dropped the label (``CK_users_email_Regex``) will see the
    constraint renamed.
    """
    parts = [
        prefix or settings.name_prefix,
        descriptor.column.table,
        descriptor.column.column,
        descriptor.kind,
    ]
    if descriptor.label and descriptor.label.strip():
        parts.append(descriptor.label.strip())
    return "_".join(parts)


def render_predicate(
    descriptor: ConstraintDescriptor, dialect: Dialect | str | None = None
) -> str:
    dialect = resolve_dialect(dialect)
    column = quote_identifier(dialect, descriptor.column.column)

    match descriptor:
        case EnumMembership():
            values = ", ".join(value_literal(v) for v in descriptor.allowed_encoded_values)
            condition = f"{column} IN ({values})"
        case RegexMatch(pattern=pattern):
            condition = regex_match(dialect, column, pattern)
        case LengthBound(max_length=max_length, min_length=min_length):
            condition = f"LENGTH({column}) <= {max_length}"
            if min_length is not None:
                condition += f" AND LENGTH({column}) >= {min_length}"
        case _:
            assert_never(descriptor)

    # Only textual columns get the NULL guard.
    if descriptor.column.nullable and descriptor.column.is_textual:
        return f"{column} IS NULL OR {condition}"
    return condition
