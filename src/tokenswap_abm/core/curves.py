"""
Constant product (x * y = k) arithmetic of the token-swap program.

All amounts are integers in the smallest unit of their token. Intermediate
values are exact fractions; the only rounding happens where the program
rounds:

- the gross output is rounded **up** (``ceil(to_reserve - k / new_from)``),
- the fee, taken from the output side, is rounded **down**.
"""

from fractions import Fraction
from typing import NamedTuple, Tuple

from tokenswap_abm.utils.math_helpers import ceil_fraction, floor_fraction


class SwapAmounts(NamedTuple):
    gross: int
    fee: int
    net: int


def compute_swap(
    amount_in: int,
    reserve_in: int,
    reserve_out: int,
    fee_ratio: Fraction,
) -> SwapAmounts:
    """
    Compute the output of a swap against a constant product pool.

    Args:
        amount_in (int): Amount of the input token paid into the pool.
        reserve_in (int): Current reserve of the input token.
        reserve_out (int): Current reserve of the output token.
        fee_ratio (Fraction): Share of the gross output withheld as a fee.

    Returns:
        SwapAmounts: Gross output, fee and net output paid to the trader.
    """
    if reserve_in <= 0:
        raise ValueError(f"reserve_in must be positive, got {reserve_in}")
    if amount_in < 0:
        raise ValueError(f"amount_in must be >= 0, got {amount_in}")

    invariant = reserve_in * reserve_out
    new_reserve_out = Fraction(invariant, reserve_in + amount_in)
    gross = ceil_fraction(reserve_out - new_reserve_out)
    fee = floor_fraction(gross * fee_ratio)
    return SwapAmounts(gross=gross, fee=fee, net=gross - fee)


def compute_deposit(amount_a: int, reserve_a: int, reserve_b: int) -> Tuple[int, int]:
    """
    Token B required, and pool tokens minted, for depositing ``amount_a`` of token A.

    Pool tokens are pegged 1:1 to token A, so ``amount_a`` pool tokens are
    minted. Token B is matched at the current rate, rounded up.
    """
    if reserve_a <= 0:
        raise ValueError(f"reserve_a must be positive, got {reserve_a}")
    if amount_a < 0:
        raise ValueError(f"amount_a must be >= 0, got {amount_a}")

    amount_b = ceil_fraction(Fraction(amount_a * reserve_b, reserve_a))
    return amount_b, amount_a


def compute_withdraw(pool_tokens: int, reserve_a: int, reserve_b: int) -> Tuple[int, int]:
    """
    Token A and B paid out by the program when ``pool_tokens`` are burned.

    Pool tokens redeem 1:1 for token A; token B is paid at the current
    rate, rounded down.
    """
    if pool_tokens < 0:
        raise ValueError(f"pool_tokens must be >= 0, got {pool_tokens}")
    if pool_tokens > reserve_a:
        raise ValueError(
            f"Cannot redeem {pool_tokens} pool tokens against a token A reserve of {reserve_a}"
        )
    if pool_tokens == 0:
        return 0, 0

    return pool_tokens, floor_fraction(Fraction(pool_tokens * reserve_b, reserve_a))
