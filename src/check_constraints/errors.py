class CheckConstraintError(ValueError):
    """Base exception for all check-constraint configuration errors."""

    pass


class ConstraintConfigurationError(CheckConstraintError):
    """Raised when a constraint cannot be attached to the given column."""

    pass


class ConstraintTypeError(ConstraintConfigurationError):
    """Raised when a constraint kind does not fit the column's declared type."""

    pass


class UnresolvedColumnError(CheckConstraintError):
    """Raised when a registered constraint targets a column missing from the finalized schema."""

    def __init__(self, entity: str, table: str, column: str) -> None:
        super().__init__(
            f"Check constraint for entity {entity!r} targets column {column!r}, "
            f"which is not present on table {table!r}"
        )
        self.entity = entity
        self.table = table
        self.column = column


class RegistryClosedError(CheckConstraintError):
    """Raised when a registry is used after its constraints have been compiled."""

    pass
