from dataclasses import dataclass
from fractions import Fraction
from numbers import Integral
from typing import Any, Dict, NamedTuple, Union

from tokenswap_abm.core.curves import compute_deposit, compute_swap
from tokenswap_abm.core.errors import EmptyPool, InvalidAsset
from tokenswap_abm.core.token import Token, TokenAccount
from tokenswap_abm.utils.math_helpers import format_ratio, to_fraction

TokenLike = Union[Token, TokenAccount]


class SwapQuote(NamedTuple):
    input_token: Token
    output_token: Token
    amount_in: int
    gross_output: int
    fee: int
    net_output: int


class DepositQuote(NamedTuple):
    token_a_amount: int
    token_b_amount: int
    pool_tokens: int


class WithdrawalQuote(NamedTuple):
    pool_tokens: int
    token_a_amount: int
    token_b_amount: int


def _mint_of(token: TokenLike) -> Token:
    return token.mint if isinstance(token, TokenAccount) else token


def _check_amount(amount: int, what: str) -> None:
    # bool is an Integral too
    if isinstance(amount, bool) or not isinstance(amount, Integral):
        raise ValueError(
            f"{what} must be an integer number of base units, got {amount!r}"
        )
    if amount < 0:
        raise ValueError(f"{what} must be >= 0, got {amount}")


@dataclass(frozen=True)
class Pool:
    """
    Point-in-time snapshot of a token-swap pool.

    A snapshot is read from the swap program, used to work out the
    parameters of one transaction, and then thrown away. It never tracks
    the ledger: after any deposit, withdrawal or swap a fresh snapshot has
    to be fetched.

    The program this mirrors mints and redeems pool tokens 1:1 against
    token A, so liquidity is counted in token A and the pool-token value of
    a token A amount is that amount. A pool for a program with a different
    liquidity-token convention needs different value conversions.

    Attributes:
        address (str): Pool address.
        token_a (TokenAccount): Pool-owned account holding reserve A.
        token_b (TokenAccount): Pool-owned account holding reserve B.
        pool_token (Token): Liquidity token mint.
        program_id (str): Swap program that owns the pool.
        nonce (int): Seed of the pool's derived authority.
        fee_ratio (Fraction): Share of the gross output withheld on every swap.
    """

    address: str
    token_a: TokenAccount
    token_b: TokenAccount
    pool_token: Token
    program_id: str
    nonce: int
    fee_ratio: Fraction

    def __post_init__(self):
        fee_ratio = to_fraction(self.fee_ratio)
        if not 0 <= fee_ratio < 1:
            raise ValueError(f"Fee ratio must lie in [0, 1), got {fee_ratio}")
        object.__setattr__(self, "fee_ratio", fee_ratio)

    @property
    def reserve_a(self) -> int:
        return self.token_a.balance

    @property
    def reserve_b(self) -> int:
        return self.token_b.balance

    def rate(self) -> float:
        """Spot price of token A in units of token B, or 0 for an empty pool."""
        if self.reserve_a > 0:
            return float(Fraction(self.reserve_b, self.reserve_a))
        return 0

    def liquidity(self) -> int:
        """Liquidity is measured in token A, the reserve pool tokens are pegged to."""
        return self.reserve_a

    def matches(self, from_token: TokenLike, to_token: TokenLike) -> bool:
        """True if the two tokens are this pool's pair, in either order."""
        a, b = self.token_a.mint, self.token_b.mint
        pair = (_mint_of(from_token), _mint_of(to_token))
        return pair == (a, b) or pair == (b, a)

    def _check_asset(self, token: TokenLike) -> bool:
        """Validate ``token`` and return True if it is token B (a reverse swap)."""
        mint = _mint_of(token)
        if mint == self.token_b.mint:
            return True
        if mint == self.token_a.mint:
            return False
        raise InvalidAsset(mint.address, self.address)

    def swap_quote(self, input_token: TokenLike, amount: int) -> SwapQuote:
        """
        Break down a swap of ``amount`` of ``input_token`` into gross output, fee and net output.

        Fees are paid by the recipient: they are taken out of the output
        amount and stay in the pool. Slippage is not taken into account.

        Raises:
            InvalidAsset: ``input_token`` is neither token A nor token B.
            EmptyPool: the input-side reserve is zero.
            ValueError: ``amount`` is negative or not an integer.
        """
        reverse = self._check_asset(input_token)
        _check_amount(amount, "Swap amount")

        from_account, to_account = (
            (self.token_b, self.token_a) if reverse else (self.token_a, self.token_b)
        )
        if from_account.balance == 0:
            raise EmptyPool(from_account.mint.address, self.address)

        gross, fee, net = compute_swap(
            amount_in=amount,
            reserve_in=from_account.balance,
            reserve_out=to_account.balance,
            fee_ratio=self.fee_ratio,
        )
        return SwapQuote(
            input_token=from_account.mint,
            output_token=to_account.mint,
            amount_in=amount,
            gross_output=gross,
            fee=fee,
            net_output=net,
        )

    def swap_output(self, input_token: TokenLike, amount: int) -> int:
        """Amount of the other token received for ``amount`` of ``input_token``."""
        return self.swap_quote(input_token, amount).net_output

    def token_a_amount_for(self, token_b_amount: int) -> int:
        return self.swap_output(self.token_b.mint, token_b_amount)

    def token_b_amount_for(self, token_a_amount: int) -> int:
        return self.swap_output(self.token_a.mint, token_a_amount)

    def implied_rate(self, from_token: TokenLike, from_amount: int) -> float:
        """
        Effective rate of a swap of ``from_amount``, fees and price impact included.

        Returns 0 for a zero amount; the token is still validated.
        """
        self._check_asset(from_token)
        if from_amount <= 0:
            return 0
        return float(Fraction(self.swap_output(from_token, from_amount), from_amount))

    # Pool tokens are pegged 1:1 to token A in this version of the program.

    def token_a_value_of_pool_tokens(self, pool_token_amount: int) -> int:
        return pool_token_amount

    def token_b_value_of_pool_tokens(self, pool_token_amount: int) -> int:
        return self.token_b_amount_for(
            self.token_a_value_of_pool_tokens(pool_token_amount)
        )

    def pool_token_value_of_token_a(self, token_a_amount: int) -> int:
        return token_a_amount

    def pool_token_value_of_token_b(self, token_b_amount: int) -> int:
        # Composes the two A-peg conversions, so this is the identity on
        # token_b_amount. Kept as the program's client defines it.
        return self.pool_token_value_of_token_a(
            self.token_a_value_of_pool_tokens(token_b_amount)
        )

    def deposit_amounts(self, token_a_amount: int) -> DepositQuote:
        """
        Amounts for a proportional deposit of ``token_a_amount`` of token A.

        Token B is matched at the current rate (rounded up) and
        ``token_a_amount`` pool tokens are minted. Only valid against a
        fresh snapshot, since the rate moves with every swap.
        """
        _check_amount(token_a_amount, "Deposit amount")
        if self.reserve_a == 0:
            raise EmptyPool(self.token_a.mint.address, self.address)
        token_b_amount, pool_tokens = compute_deposit(
            token_a_amount, self.reserve_a, self.reserve_b
        )
        return DepositQuote(token_a_amount, token_b_amount, pool_tokens)

    def withdrawal_amounts(self, pool_tokens: int) -> WithdrawalQuote:
        """Token A and token B value of burning ``pool_tokens``."""
        return WithdrawalQuote(
            pool_tokens=pool_tokens,
            token_a_amount=self.token_a_value_of_pool_tokens(pool_tokens),
            token_b_amount=self.token_b_value_of_pool_tokens(pool_tokens),
        )

    def __str__(self) -> str:
        return (
            f"Pool Address: {self.address}\n"
            f"    Token A: {self.token_a}\n"
            f"    Token B: {self.token_b}\n"
            f"    Pool Token: {self.pool_token}\n"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "tokenA": self.token_a.to_dict(),
            "tokenB": self.token_b.to_dict(),
            "poolToken": self.pool_token.to_dict(),
            "programId": self.program_id,
            "nonce": self.nonce,
            "feeRatio": format_ratio(self.fee_ratio),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Pool":
        return cls(
            address=str(data["address"]),
            token_a=TokenAccount.from_dict(data["tokenA"]),
            token_b=TokenAccount.from_dict(data["tokenB"]),
            pool_token=Token.from_dict(data["poolToken"]),
            program_id=str(data["programId"]),
            nonce=int(data["nonce"]),
            fee_ratio=to_fraction(data["feeRatio"]),
        )
