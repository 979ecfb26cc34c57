import contextvars

compile_entity_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "compile_entity", default=None
)
