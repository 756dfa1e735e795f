from tokenswap_abm.core.errors import EmptyPool, InvalidAsset, PoolError
from tokenswap_abm.core.pool import DepositQuote, Pool, SwapQuote, WithdrawalQuote
from tokenswap_abm.core.token import Token, TokenAccount

__version__ = "1.0.0"

__all__ = [
    "DepositQuote",
    "EmptyPool",
    "InvalidAsset",
    "Pool",
    "PoolError",
    "SwapQuote",
    "Token",
    "TokenAccount",
    "WithdrawalQuote",
]
