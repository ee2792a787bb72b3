"""
Strategy registry setup for RetireLab.
"""

from retirelab.core.kinds import K
from retirelab.core.registry import WithdrawalRegistry

from .ordered import TaxableFirst, TaxDeferredFirst
from .pro_rata import ProRata
from .tax_optimized import TaxOptimized


def register_defaults():
    """
    Register all default withdrawal strategies in the global registry.

    Registered Strategies:
        - 'taxableFirst': taxable -> tax-deferred -> Roth
        - 'taxDeferredFirst': tax-deferred -> taxable -> Roth
        - 'proRata': proportional across taxable and tax-deferred, Roth last
        - 'taxOptimized': six-step greedy ordering (default)

    Note:
        This function is automatically called when the package is imported.
        Additional strategies can be registered by assigning into
        ``WithdrawalRegistry`` directly.
    """
    WithdrawalRegistry[K.W_TAXABLE_FIRST] = TaxableFirst()
    WithdrawalRegistry[K.W_TAX_DEFERRED_FIRST] = TaxDeferredFirst()
    WithdrawalRegistry[K.W_PRO_RATA] = ProRata()
    WithdrawalRegistry[K.W_TAX_OPTIMIZED] = TaxOptimized()
