"""
Withdrawal-strategy registry.

Maps withdrawal-order names (``K.W_*``) to strategy instances. The default
strategies are registered when :mod:`retirelab.strategies` is imported.
"""

from __future__ import annotations

from .errors import ConfigError
from .interfaces import IWithdrawalStrategy

WithdrawalRegistry: dict[str, IWithdrawalStrategy] = {}


def get_strategy(name: str) -> IWithdrawalStrategy:
    """Look up a registered strategy, raising ConfigError for unknown names."""
    try:
        return WithdrawalRegistry[name]
    except KeyError:
        known = ", ".join(sorted(WithdrawalRegistry))
        raise ConfigError(
            f"No withdrawal strategy registered for '{name}'. Known: {known}"
        ) from None
