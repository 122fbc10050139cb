"""Logic module for product configuration: selection, constraints and pricing."""

from .availability import VariantAvailabilityResolver
from .cart_line import CartLine, CartLineBuilder, ColorLine, ItemLine, SizeLine
from .constraints import CategoryConstraintValidator, ToggleResult
from .failures import (
    CategoryBelowMinimum,
    CouponNotApplicable,
    FailureCode,
    IncompatibleColorSize,
    InsufficientFlavors,
    LimitExceeded,
    MissingRequiredColor,
    MissingRequiredSize,
    OptionUnavailable,
    ValidationFailure,
)
from .pricing import PriceAggregator, PriceBreakdown
from .session import ConfigurationSession
from .state import SelectionState

__all__ = [
    'VariantAvailabilityResolver',
    'CategoryConstraintValidator',
    'ToggleResult',
    'SelectionState',
    'PriceAggregator',
    'PriceBreakdown',
    'CartLineBuilder',
    'CartLine',
    'SizeLine',
    'ColorLine',
    'ItemLine',
    'ConfigurationSession',
    'ValidationFailure',
    'FailureCode',
    'MissingRequiredSize',
    'MissingRequiredColor',
    'IncompatibleColorSize',
    'InsufficientFlavors',
    'CategoryBelowMinimum',
    'LimitExceeded',
    'OptionUnavailable',
    'CouponNotApplicable',
]
