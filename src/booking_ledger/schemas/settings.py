import os
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from booking_ledger.utils.constants import (
    DEFAULT_CANCELLATION_FEE_RATE,
    DEFAULT_MAX_BOOKINGS,
    DEFAULT_PLATFORM_FEE_RATE,
    MAX_REVIEW_COMMENT_LENGTH,
)


class LedgerSettings(BaseModel):
    """Fee rates (percent) and capacity limits applied by the ledger."""

    model_config = ConfigDict(frozen=True)

    platform_fee_rate: int = Field(default=DEFAULT_PLATFORM_FEE_RATE, ge=0, le=100)
    cancellation_fee_rate: int = Field(default=DEFAULT_CANCELLATION_FEE_RATE, ge=0, le=100)
    max_bookings: int = Field(default=DEFAULT_MAX_BOOKINGS, ge=1)
    max_review_comment_length: int = Field(default=MAX_REVIEW_COMMENT_LENGTH, ge=0)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "LedgerSettings":
        environ = os.environ if environ is None else environ
        values = {}
        for field_name, env_name in (
            ("platform_fee_rate", "PLATFORM_FEE_RATE"),
            ("cancellation_fee_rate", "CANCELLATION_FEE_RATE"),
            ("max_bookings", "MAX_BOOKINGS"),
        ):
            raw = environ.get(env_name)
            if raw is not None and raw != "":
                values[field_name] = raw
        return cls.model_validate(values)

    def cancellation_fee_for(self, total_cost: int) -> int:
        return total_cost * self.cancellation_fee_rate // 100

    def platform_fee_for(self, total_cost: int) -> int:
        return total_cost * self.platform_fee_rate // 100
