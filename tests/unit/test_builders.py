import pytest
from sqlalchemy import Column, Integer, MetaData, String, Table
from sqlalchemy import Enum as SQLEnum

from check_constraints.builders import (
    has_custom_constraint,
    has_email_constraint,
    has_enum_constraint,
    has_length_constraint,
    has_regex_constraint,
    resolve_target,
)
from check_constraints.descriptors import EnumMembership, LengthBound, RegexMatch
from check_constraints.domain import EMAIL_REGEX, ColumnRef
from check_constraints.errors import ConstraintConfigurationError, ConstraintTypeError
from check_constraints.registry import ConstraintRegistry
from tests.sample_models import AccountStatus, Color, Priority, SampleSchema


def test_resolve_target_for_orm_attribute(sample_schema: SampleSchema) -> None:
    entity, column = resolve_target(sample_schema.user.email)

    assert entity is sample_schema.user
    assert column is sample_schema.user.__table__.c.email


def test_resolve_target_rejects_detached_column() -> None:
    with pytest.raises(ConstraintConfigurationError):
        resolve_target(Column("loose", String))


def test_builders_return_target_for_chaining(
    registry: ConstraintRegistry, sample_schema: SampleSchema
) -> None:
    email = sample_schema.user.email

    result = has_length_constraint(registry, has_email_constraint(registry, email), 255)

    assert result is email
    kinds = [d.kind for d in registry.descriptors_for(sample_schema.user)]
    assert kinds == ["Regex", "Length"]


def test_email_constraint_is_labelled_regex(
    registry: ConstraintRegistry, sample_schema: SampleSchema
) -> None:
    has_email_constraint(registry, sample_schema.user.email)

    (descriptor,) = registry.descriptors_for(sample_schema.user)
    assert isinstance(descriptor, RegexMatch)
    assert descriptor.pattern == EMAIL_REGEX
    assert descriptor.label == "Email"
    assert descriptor.column.nullable is True
    assert descriptor.name() == "CK_users_email_Regex_Email"


def test_regex_constraint_carries_label(
    registry: ConstraintRegistry, sample_schema: SampleSchema
) -> None:
    has_regex_constraint(registry, sample_schema.user.username, "^[a-z_]+$", label="Slug")

    (descriptor,) = registry.descriptors_for(sample_schema.user)
    assert descriptor.name() == "CK_users_username_Regex_Slug"
    assert descriptor.predicate() == "\"username\" ~ '^[a-z_]+$'"


@pytest.mark.parametrize(
    "register",
    [
        lambda registry, attr: has_regex_constraint(registry, attr, "^[0-9]+$"),
        lambda registry, attr: has_email_constraint(registry, attr),
        lambda registry, attr: has_length_constraint(registry, attr, 10),
    ],
)
def test_textual_constraints_reject_non_textual_columns(
    registry: ConstraintRegistry, sample_schema: SampleSchema, register
) -> None:
    with pytest.raises(ConstraintTypeError):
        register(registry, sample_schema.user.priority)

    assert registry.descriptors_for(sample_schema.user) == ()


def test_enum_constraint_infers_enum_from_column_type(
    registry: ConstraintRegistry, sample_schema: SampleSchema
) -> None:
    has_enum_constraint(registry, sample_schema.user.status)

    (descriptor,) = registry.descriptors_for(sample_schema.user)
    assert isinstance(descriptor, EnumMembership)
    assert descriptor.members == tuple(AccountStatus)
    assert descriptor.predicate() == "\"status\" IN ('ACTIVE', 'SUSPENDED', 'CLOSED')"


def test_enum_constraint_with_explicit_enum_on_integer_column(
    registry: ConstraintRegistry, sample_schema: SampleSchema
) -> None:
    has_enum_constraint(registry, sample_schema.user.priority, enum_type=Priority)

    (descriptor,) = registry.descriptors_for(sample_schema.user)
    assert descriptor.predicate() == '"priority" IN (1, 2, 3)'


def test_enum_constraint_uses_converter(
    registry: ConstraintRegistry, sample_schema: SampleSchema
) -> None:
    has_enum_constraint(
        registry,
        sample_schema.user.status,
        converter=lambda member: member.value.upper()[:3],
    )

    (descriptor,) = registry.descriptors_for(sample_schema.user)
    assert descriptor.allowed_encoded_values == ("ACT", "SUS", "CLO")


def test_enum_constraint_without_enum_type_is_rejected(
    registry: ConstraintRegistry, sample_schema: SampleSchema
) -> None:
    with pytest.raises(ConstraintTypeError):
        has_enum_constraint(registry, sample_schema.user.priority)


def test_custom_constraint_receives_column_ref(
    registry: ConstraintRegistry, sample_schema: SampleSchema
) -> None:
    seen: list[ColumnRef] = []

    def factory(column: ColumnRef) -> LengthBound:
        seen.append(column)
        return LengthBound(column=column, max_length=16, label="Short")

    has_custom_constraint(registry, sample_schema.tag.name, factory)

    assert seen[0].table == "tags"
    assert seen[0].column == "name"
    (descriptor,) = registry.descriptors_for(sample_schema.tag)
    assert descriptor.name() == "CK_tags_name_Length_Short"


def test_custom_constraint_must_return_known_descriptor(
    registry: ConstraintRegistry, sample_schema: SampleSchema
) -> None:
    with pytest.raises(ConstraintTypeError):
        has_custom_constraint(registry, sample_schema.tag.name, lambda column: "name <> ''")


def test_core_column_registers_against_its_table(registry: ConstraintRegistry) -> None:
    metadata = MetaData()
    table = Table(
        "codes",
        metadata,
        Column("id", Integer, primary_key=True),
        Column("value", String(4)),
    )

    has_length_constraint(registry, table.c.value, max_length=4)

    (descriptor,) = registry.descriptors_for(table)
    assert descriptor.column.nullable is True
    assert descriptor.predicate() == '"value" IS NULL OR LENGTH("value") <= 4'


def test_enum_constraint_on_aliased_enum_compiles(registry: ConstraintRegistry) -> None:
    metadata = MetaData()
    paints = Table(
        "paints",
        metadata,
        Column("id", Integer, primary_key=True),
        Column("color", SQLEnum(Color, native_enum=False), nullable=False),
    )
    has_enum_constraint(registry, paints.c.color)

    compiled = registry.compile(metadata)

    assert compiled[0].name == "CK_paints_color_Enum"
    assert compiled[0].predicate == "\"color\" IN ('RED', 'BLUE')"
