"""ContractScope — smart-contract vulnerability detection and market-risk scoring."""

__version__ = "0.1.0"
