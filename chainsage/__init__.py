"""ChainSage: natural-language questions answered from blockchain data providers."""

__version__ = "0.1.0"
