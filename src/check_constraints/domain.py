from collections.abc import Callable
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import Column, String, Table
from sqlalchemy.types import TypeEngine

from check_constraints.errors import ConstraintConfigurationError

ConstraintKind = Literal["Enum", "Regex", "Length"]

EMAIL_REGEX = r"^([\w\.\-]+)@([\w\-]+)((\.(\w){2,5})+)$"
EMAIL_LABEL = "Email"

ValueConverter = Callable[[Any], Any]


class ColumnRef(BaseModel):
    """Identity of the column a constraint applies to.

    Captured from schema metadata when the constraint is declared, and checked
    against the finalized table when the registry compiles.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    table: str = Field(min_length=1, description="Name of the owning table")
    column: str = Field(min_length=1, description="Name of the database column")
    type_: TypeEngine = Field(description="Declared SQLAlchemy column type")
    nullable: bool = Field(description="Whether the column accepts NULL")
    converter: ValueConverter | None = Field(
        default=None, description="Maps a model value to its stored representation"
    )

    @property
    def is_textual(self) -> bool:
        return isinstance(self.type_, String)

    @classmethod
    def from_column(
        cls, column: Column[Any], converter: ValueConverter | None = None
    ) -> "ColumnRef":
        table = getattr(column, "table", None)
        if not isinstance(table, Table):
            raise ConstraintConfigurationError(
                f"Column {column.name!r} is not attached to a table"
            )
        return cls(
            table=table.name,
            column=column.name,
            type_=column.type,
            nullable=bool(column.nullable),
            converter=converter,
        )
