"""Plan tax-efficient drawdown from a UK DC pension alongside DB and state pensions."""

__version__ = "0.1.0"
