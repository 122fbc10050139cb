"""Failure taxonomy for product configuration.

Recoverable outcomes are plain frozen dataclasses returned to the caller so the
UI can highlight the exact unmet rule in place. Each carries a stable `code`.

- LimitExceeded / OptionUnavailable: signalled at selection time, prior state kept.
- CouponNotApplicable: returned by the cart store when a coupon is refused.
- Everything else: reported by CartLineBuilder at confirmation.

Programming errors (unknown ids, closed sessions) raise, see configurator.errors.
"""

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Optional


class FailureCode(str, Enum):
    MISSING_REQUIRED_SIZE = "MISSING_REQUIRED_SIZE"
    MISSING_REQUIRED_COLOR = "MISSING_REQUIRED_COLOR"
    INCOMPATIBLE_COLOR_SIZE = "INCOMPATIBLE_COLOR_SIZE"
    INSUFFICIENT_FLAVORS = "INSUFFICIENT_FLAVORS"
    CATEGORY_BELOW_MINIMUM = "CATEGORY_BELOW_MINIMUM"
    LIMIT_EXCEEDED = "LIMIT_EXCEEDED"
    OPTION_UNAVAILABLE = "OPTION_UNAVAILABLE"
    COUPON_NOT_APPLICABLE = "COUPON_NOT_APPLICABLE"


@dataclass(frozen=True)
class ValidationFailure(ABC):
    """Base class for every recoverable configuration failure.

    Abstract: only the concrete failures below can be instantiated.
    """

    @property
    @abstractmethod
    def code(self) -> FailureCode:
        ...

    @property
    def message(self) -> str:
        return self.code.value

    def to_dict(self) -> dict:
        data = {"code": self.code.value, "message": self.message}
        data.update(asdict(self))
        return data


@dataclass(frozen=True)
class MissingRequiredSize(ValidationFailure):
    @property
    def code(self) -> FailureCode:
        return FailureCode.MISSING_REQUIRED_SIZE

    @property
    def message(self) -> str:
        return "Choose a size"


@dataclass(frozen=True)
class MissingRequiredColor(ValidationFailure):
    @property
    def code(self) -> FailureCode:
        return FailureCode.MISSING_REQUIRED_COLOR

    @property
    def message(self) -> str:
        return "Choose a color"


@dataclass(frozen=True)
class IncompatibleColorSize(ValidationFailure):
    color_id: str
    size_id: str

    @property
    def code(self) -> FailureCode:
        return FailureCode.INCOMPATIBLE_COLOR_SIZE

    @property
    def message(self) -> str:
        return f"Color '{self.color_id}' is not available in size '{self.size_id}'"


@dataclass(frozen=True)
class InsufficientFlavors(ValidationFailure):
    @property
    def code(self) -> FailureCode:
        return FailureCode.INSUFFICIENT_FLAVORS

    @property
    def message(self) -> str:
        return "Choose at least one flavor"


@dataclass(frozen=True)
class CategoryBelowMinimum(ValidationFailure):
    category_id: str
    min_items: int = 0
    selected: int = 0

    @property
    def code(self) -> FailureCode:
        return FailureCode.CATEGORY_BELOW_MINIMUM

    @property
    def message(self) -> str:
        return (
            f"Category '{self.category_id}' needs at least {self.min_items} "
            f"item(s), {self.selected} selected"
        )


@dataclass(frozen=True)
class LimitExceeded(ValidationFailure):
    category_id: str
    max_items: int

    @property
    def code(self) -> FailureCode:
        return FailureCode.LIMIT_EXCEEDED

    @property
    def message(self) -> str:
        return f"Category '{self.category_id}' allows at most {self.max_items} item(s)"


@dataclass(frozen=True)
class OptionUnavailable(ValidationFailure):
    option_id: str
    reason: Optional[str] = None

    @property
    def code(self) -> FailureCode:
        return FailureCode.OPTION_UNAVAILABLE

    @property
    def message(self) -> str:
        if self.reason:
            return f"Option '{self.option_id}' is unavailable: {self.reason}"
        return f"Option '{self.option_id}' is unavailable"


@dataclass(frozen=True)
class CouponNotApplicable(ValidationFailure):
    coupon_code: str
    reason: str

    @property
    def code(self) -> FailureCode:
        return FailureCode.COUPON_NOT_APPLICABLE

    @property
    def message(self) -> str:
        return f"Coupon '{self.coupon_code}' cannot be applied: {self.reason}"
