from __future__ import annotations


class SalesMasterError(Exception):
    """Base class for errors raised by salesmaster."""


class ValidationError(SalesMasterError):
    """An order (or catalog record) is missing required data before save."""

    def __init__(self, problems: list[str] | str):
        if isinstance(problems, str):
            problems = [problems]
        self.problems = list(problems)
        super().__init__("; ".join(self.problems))


class InvalidArgument(SalesMasterError):
    pass


class NoDataError(SalesMasterError):
    """The requested report window contains no orders."""


class StoreError(SalesMasterError):
    pass


class RecordNotFound(StoreError):
    def __init__(self, collection: str, record_id: str):
        self.collection = collection
        self.record_id = record_id
        super().__init__(f"{collection} record not found: {record_id}")


class ExportError(SalesMasterError):
    pass
