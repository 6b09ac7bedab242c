from pydantic import BaseModel
from typing import Generic, TypeVar, Optional

from booking_ledger.utils.custom_exceptions import BookingError, ErrorKind, ERROR_CODES

T = TypeVar("T")


class OperationResult(BaseModel, Generic[T]):
    ok: bool
    value: Optional[T] = None
    error: Optional[ErrorKind] = None
    message: Optional[str] = None

    @property
    def error_code(self) -> Optional[int]:
        if self.error is None:
            return None
        return ERROR_CODES[self.error]

    @classmethod
    def success(cls, value: Optional[T] = None) -> "OperationResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, err: BookingError) -> "OperationResult[T]":
        return cls(ok=False, error=err.kind, message=err.message)
