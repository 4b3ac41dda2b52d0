"""Domain Value Objects"""
from pydantic import BaseModel, Field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

from domain.exceptions import InvalidDateRangeError

MONEY_QUANTUM = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Union[Decimal, int, float, str]) -> Decimal:
    """Quantize a monetary value to 2 decimal places"""
    if isinstance(value, float):
        # go through str so 0.1 stays 0.1 instead of its binary expansion
        value = str(value)
    return Decimal(value).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


class DateRange(BaseModel):
    """Value Object for a stay interval [check_in, check_out)"""
    check_in: date
    check_out: date

    @classmethod
    def of(cls, check_in: date, check_out: date) -> "DateRange":
        """Build a range, rejecting stays of zero or negative nights"""
        date_range = cls(check_in=check_in, check_out=check_out)
        if date_range.nights() <= 0:
            raise InvalidDateRangeError()
        return date_range

    def nights(self) -> int:
        """Calculate number of nights"""
        return (self.check_out - self.check_in).days

    def overlaps(self, check_in: date, check_out: date) -> bool:
        """Strict interval overlap; back-to-back stays do not collide"""
        return self.check_in < check_out and self.check_out > check_in

    class Config:
        frozen = True


class GuestCount(BaseModel):
    """Value Object for party size"""
    adults: int = Field(ge=1)
    children: int = Field(ge=0, default=0)
    infants: int = Field(ge=0, default=0)

    @property
    def total(self) -> int:
        return self.adults + self.children + self.infants

    class Config:
        frozen = True
