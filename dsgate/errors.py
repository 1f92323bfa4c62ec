from __future__ import annotations

from typing import Any


class DsgateError(RuntimeError):
    pass


class SchemaNotFoundError(DsgateError):
    """Raised when a schema name is not among the compiled schemas."""


class SchemaValidationError(DsgateError):
    """Raised by SchemaValidator.validate_or_throw(); carries every error found."""

    def __init__(self, schema_name: str, errors: list[dict[str, Any]]):
        self.schema_name = schema_name
        self.errors = list(errors)
        detail = ", ".join(f"{e['path']}: {e['message']}" for e in self.errors)
        super().__init__(f"Schema validation failed for {schema_name}: {detail}")


class RegistryLoadError(DsgateError):
    pass


class PatchFileError(DsgateError):
    pass


class RollbackError(DsgateError):
    pass
