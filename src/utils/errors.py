from __future__ import annotations


class AirRoutesError(Exception):
    """Base class for loader errors the command line reports and exits on."""


class SchemaDescriptorError(AirRoutesError):
    """The schema descriptor could not be read, parsed or validated."""


class DataSourceError(AirRoutesError):
    """A CSV source could not be read or lacks required columns."""


class SchemaViolation(AirRoutesError):
    """A write does not match the committed graph schema."""


class UniquenessViolation(SchemaViolation):
    def __init__(self, index_name: str, values: tuple) -> None:
        super().__init__(f"Unique index {index_name!r} already holds {values!r}")
        self.index_name = index_name
        self.values = values
