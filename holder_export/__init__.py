"""Token Holder Export Service.

Aggregates every holder account of a token mint from the Helius RPC
provider and exports balances, or a proportional airdrop split, as CSV.
"""

__version__ = "0.1.0"
