"""
RetireLab Kind Constants (string discriminators used across plans and results).
"""


class K:
    # === Account types ===
    ACCT_TAXABLE = "taxable"
    ACCT_TAX_DEFERRED = "taxDeferred"
    ACCT_DEFERRED_COMP = "deferredComp"  # NQDC plans with a payout schedule
    ACCT_ROTH = "roth"

    # === Owners ===
    OWNER_PRIMARY = "primary"
    OWNER_SPOUSE = "spouse"
    OWNER_JOINT = "joint"

    # === Filing status ===
    FILING_SINGLE = "single"
    FILING_MFJ = "mfj"
    FILING_SURVIVOR = "survivor"

    # === Marital status ===
    MARITAL_SINGLE = "single"
    MARITAL_MARRIED = "married"

    # === Household phases ===
    PHASE_SINGLE = "single"  # one-person household
    PHASE_JOINT = "joint"
    PHASE_SURVIVOR = "survivor"  # first three years after a death
    PHASE_SURVIVOR_SINGLE = "survivorSingle"

    # === Withdrawal orders ===
    W_TAXABLE_FIRST = "taxableFirst"
    W_TAX_DEFERRED_FIRST = "taxDeferredFirst"
    W_PRO_RATA = "proRata"
    W_TAX_OPTIMIZED = "taxOptimized"

    # === Rebalancing ===
    REBALANCE_NONE = "none"
    REBALANCE_ANNUAL = "annual"
    REBALANCE_QUARTERLY = "quarterly"

    # === Simulation modes ===
    MODE_DETERMINISTIC = "deterministic"
    MODE_HISTORICAL = "historical"
    MODE_STRESS = "stress"
    MODE_MONTE_CARLO = "monteCarlo"

    # === Tax models ===
    TAX_EFFECTIVE = "effective"
    TAX_BRACKET = "bracket"  # recognized but not supported
    TAX_NONE = "none"

    # === Deferred-comp payout frequency ===
    FREQ_ANNUAL = "annual"
    FREQ_MONTHLY = "monthly"

    # === Solver step tags (taxOptimized diagnostics) ===
    STEP_DEDUCTION_FILL = "deductionFill"
    STEP_BASIS_RETURN = "basisReturn"
    STEP_LOW_BRACKET_FILL = "lowBracketFill"
    STEP_CAPITAL_GAINS = "capitalGains"
    STEP_ORDINARY = "ordinary"
    STEP_ROTH = "roth"
    STEP_ORDERED = "ordered"  # fixed-order strategies
    STEP_PRO_RATA = "proRata"

    @classmethod
    def account_types(cls) -> list[str]:
        return [
            cls.ACCT_TAXABLE,
            cls.ACCT_TAX_DEFERRED,
            cls.ACCT_DEFERRED_COMP,
            cls.ACCT_ROTH,
        ]

    @classmethod
    def owners(cls) -> list[str]:
        return [cls.OWNER_PRIMARY, cls.OWNER_SPOUSE, cls.OWNER_JOINT]

    @classmethod
    def filing_statuses(cls) -> list[str]:
        return [cls.FILING_SINGLE, cls.FILING_MFJ, cls.FILING_SURVIVOR]

    @classmethod
    def withdrawal_orders(cls) -> list[str]:
        """Enumerate all known withdrawal orders (for validation and docs)."""
        return [
            cls.W_TAXABLE_FIRST,
            cls.W_TAX_DEFERRED_FIRST,
            cls.W_PRO_RATA,
            cls.W_TAX_OPTIMIZED,
        ]

    @classmethod
    def rebalance_frequencies(cls) -> list[str]:
        return [cls.REBALANCE_NONE, cls.REBALANCE_ANNUAL, cls.REBALANCE_QUARTERLY]

    @classmethod
    def simulation_modes(cls) -> list[str]:
        return [
            cls.MODE_DETERMINISTIC,
            cls.MODE_HISTORICAL,
            cls.MODE_STRESS,
            cls.MODE_MONTE_CARLO,
        ]

    @classmethod
    def is_tax_deferred(cls, account_type: str) -> bool:
        """Tax-deferred bucket: traditional accounts and deferred compensation."""
        return account_type in (cls.ACCT_TAX_DEFERRED, cls.ACCT_DEFERRED_COMP)
