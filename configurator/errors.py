"""Exceptions raised for configurator programming errors.

Recoverable, user-correctable outcomes are not exceptions; see
configurator.logic.failures.
"""


class ConfiguratorError(Exception):
    """Base class for configurator programming errors."""


class UnknownProductError(ConfiguratorError, KeyError):
    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Unknown product '{product_id}'")


class UnknownOptionError(ConfiguratorError, KeyError):
    """An id that is not part of the product's catalogue (or not of the given category)."""

    def __init__(self, option_id: str, context: str = ""):
        self.option_id = option_id
        detail = f" in {context}" if context else ""
        super().__init__(f"Unknown option '{option_id}'{detail}")


class SessionClosedError(ConfiguratorError):
    """Raised when a confirmed or cancelled session is used again."""
