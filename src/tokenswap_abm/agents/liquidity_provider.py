from mesa import Agent
from typing import Callable, Optional
import logging

logger = logging.getLogger(__name__)


class LiquidityProviderAgent(Agent):
    """
    Liquidity provider that alternates between depositing and withdrawing.

    On a deposit step it adds ``deposit_fraction`` of the token A reserve
    (matched with token B at the current rate); on the next step it burns
    every pool token it holds.

    Attributes:
        program (SwapProgramAgent): Program holding the pool and accounts.
        pool_address (str): Pool the provider supplies.
        account_a (str): Provider's token A account address.
        account_b (str): Provider's token B account address.
        pool_token_account (str): Provider's pool token account address.
        deposit_fraction (float): Deposit size as a fraction of the token A reserve.
        on_deposit (Callable): Optional hook called with (agent, quote).
        on_withdraw (Callable): Optional hook called with (agent, (amount_a, amount_b)).
    """

    def __init__(
        self,
        model,
        program,
        pool_address: str,
        account_a: Optional[str] = None,
        account_b: Optional[str] = None,
        pool_token_account: Optional[str] = None,
        deposit_fraction: float = 0.01,
        on_deposit: Optional[Callable] = None,
        on_withdraw: Optional[Callable] = None,
    ):
        super().__init__(model)
        self.program = program
        self.pool_address = pool_address
        self.account_a = account_a
        self.account_b = account_b
        self.pool_token_account = pool_token_account
        self.deposit_fraction = float(deposit_fraction)
        self.on_deposit = on_deposit
        self.on_withdraw = on_withdraw
        self._deposit_next = True

    @property
    def owner(self) -> str:
        return f"lp-{self.unique_id}"

    def _deposit(self) -> None:
        pool = self.program.get_pool(self.pool_address)
        amount_a = int(pool.reserve_a * self.deposit_fraction)
        if amount_a < 1:
            logger.debug("%s: pool %s too small to deposit into", self.owner, pool.address)
            return
        quote = pool.deposit_amounts(amount_a)
        balance_a = self.program.get_account(self.account_a).balance
        balance_b = self.program.get_account(self.account_b).balance
        if quote.token_a_amount > balance_a or quote.token_b_amount > balance_b:
            logger.debug("%s cannot fund deposit %s", self.owner, quote)
            return

        quote = self.program.deposit(
            self.owner, self.pool_address, self.account_a, self.account_b,
            self.pool_token_account, amount_a,
        )
        self.model.metrics["deposits"].append({
            "step": self.model.steps,
            "provider": self.owner,
            "token_a": quote.token_a_amount,
            "token_b": quote.token_b_amount,
            "pool_tokens": quote.pool_tokens,
        })
        if self.on_deposit:
            self.on_deposit(self, quote)

    def _withdraw(self) -> None:
        pool = self.program.get_pool(self.pool_address)
        held = self.program.get_account(self.pool_token_account).balance
        pool_tokens = min(held, pool.reserve_a)
        if pool_tokens < 1:
            logger.debug("%s holds no pool tokens to withdraw", self.owner)
            return

        expected = pool.withdrawal_amounts(pool_tokens)
        amounts = self.program.withdraw(
            self.owner, self.pool_address, self.pool_token_account,
            self.account_a, self.account_b, pool_tokens,
        )
        self.model.metrics["withdrawals"].append({
            "step": self.model.steps,
            "provider": self.owner,
            "pool_tokens": pool_tokens,
            "token_a": amounts[0],
            "token_b": amounts[1],
            "quoted_token_b": expected.token_b_amount,
        })
        if self.on_withdraw:
            self.on_withdraw(self, amounts)

    def step(self):
        if self._deposit_next:
            self._deposit()
        else:
            self._withdraw()
        self._deposit_next = not self._deposit_next
