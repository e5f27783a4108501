"""Exception taxonomy shared by every creek_bot module."""

from __future__ import annotations


class CreekBotError(Exception):
    """Base class for all errors raised by creek_bot."""


class ConfigurationError(CreekBotError):
    """Missing role binding, bad id or invalid numeric input."""


class DiscoveryError(CreekBotError):
    """No usable entry point, or a configured id is not a package."""


class SuiRPCError(CreekBotError):
    """Transport or JSON-RPC level failure from the fullnode."""

    def __init__(self, message: str, code: int | None = None):
        super().__init__(message)
        self.code = code


class ExecutionError(CreekBotError):
    """A submission could not be completed.

    ``last_message`` keeps the raw chain/RPC message so operators can extend
    the failure patterns when something goes unmatched.
    """

    def __init__(self, message: str, last_message: str | None = None, amount: int | None = None):
        super().__init__(message)
        self.last_message = last_message
        self.amount = amount


class FeeShortfallError(ExecutionError):
    """Gas budget or gas coin balance is too small; never retried."""


class AmountExhaustedError(ExecutionError):
    """Halving the amount reached zero."""
