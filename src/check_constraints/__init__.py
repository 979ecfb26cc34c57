from check_constraints.builders import (
    has_custom_constraint,
    has_email_constraint,
    has_enum_constraint,
    has_length_constraint,
    has_regex_constraint,
)
from check_constraints.descriptors import (
    ConstraintDescriptor,
    EnumMembership,
    LengthBound,
    RegexMatch,
    constraint_name,
    render_predicate,
)
from check_constraints.domain import EMAIL_REGEX, ColumnRef
from check_constraints.errors import (
    CheckConstraintError,
    ConstraintConfigurationError,
    ConstraintTypeError,
    RegistryClosedError,
    UnresolvedColumnError,
)
from check_constraints.registry import (
    CompiledConstraint,
    ConstraintRegistry,
    RegistryPhase,
    TableSink,
)

__all__ = [
    "EMAIL_REGEX",
    "CheckConstraintError",
    "ColumnRef",
    "CompiledConstraint",
    "ConstraintConfigurationError",
    "ConstraintDescriptor",
    "ConstraintRegistry",
    "ConstraintTypeError",
    "EnumMembership",
    "LengthBound",
    "RegexMatch",
    "RegistryClosedError",
    "RegistryPhase",
    "TableSink",
    "UnresolvedColumnError",
    "constraint_name",
    "has_custom_constraint",
    "has_email_constraint",
    "has_enum_constraint",
    "has_length_constraint",
    "has_regex_constraint",
    "render_predicate",
]
