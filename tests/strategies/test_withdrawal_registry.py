"""
Tests for the withdrawal-strategy registry.
"""

import pytest

from retirelab.core.errors import ConfigError
from retirelab.core.interfaces import IWithdrawalStrategy
from retirelab.core.kinds import K
from retirelab.core.registry import WithdrawalRegistry, get_strategy
from retirelab.strategies import register_defaults


class TestWithdrawalRegistry:
    def test_every_order_is_registered(self):
        for name in K.withdrawal_orders():
            strategy = get_strategy(name)
            assert strategy.name == name
            assert isinstance(strategy, IWithdrawalStrategy)

    def test_registry_matches_kinds(self):
        assert set(WithdrawalRegistry) == set(K.withdrawal_orders())

    def test_unknown_order_raises_config_error(self):
        with pytest.raises(ConfigError, match="No withdrawal strategy registered"):
            get_strategy("alphabetical")

    def test_register_defaults_is_idempotent(self):
        register_defaults()
        assert len(WithdrawalRegistry) == len(K.withdrawal_orders())
