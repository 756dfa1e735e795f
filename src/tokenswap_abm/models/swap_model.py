# src/tokenswap_abm/models/swap_model.py

import logging
from mesa import Model
from mesa.datacollection import DataCollector

from tokenswap_abm.agents.swap_program import SwapProgramAgent
from tokenswap_abm.agents.trader import TraderAgent
from tokenswap_abm.agents.liquidity_provider import LiquidityProviderAgent

logger = logging.getLogger(__name__)

CREATOR = "pool-creator"


class TokenSwapModel(Model):
    """
    Mesa model of one constant product pool with traders and liquidity providers.

    - A single SwapProgramAgent is the ledger; every other agent reads pool
      snapshots from it and submits transactions to it.
    - Participants are activated in random order each step; the program
      advances its slot afterwards.
    - Pool metrics are collected from a fresh snapshot after every step.
    """

    def __init__(self, config: dict):
        sim_cfg = config.get("simulation", {})
        seed = sim_cfg.get("seed", None)
        super().__init__(seed=seed)

        self.num_steps = sim_cfg.get("steps", 100)

        # --- Pool parameters ---
        pool_cfg = config.get("pool", {})
        token_a_cfg = pool_cfg.get("token_a", {})
        token_b_cfg = pool_cfg.get("token_b", {})
        self.fee_numerator = int(pool_cfg.get("fee_numerator", 3))
        self.fee_denominator = int(pool_cfg.get("fee_denominator", 1000))

        self.traders_cfg = config.get("traders", {})
        self.providers_cfg = config.get("liquidity_providers", {})

        self.metrics = {
            "swaps": [],
            "deposits": [],
            "withdrawals": [],
        }

        # --- Ledger and pool ---
        self.program = SwapProgramAgent(self)
        self.token_a = self.program.create_token(
            name=token_a_cfg.get("name", "TOKEN_A"), decimals=int(token_a_cfg.get("decimals", 0))
        )
        self.token_b = self.program.create_token(
            name=token_b_cfg.get("name", "TOKEN_B"), decimals=int(token_b_cfg.get("decimals", 0))
        )
        self.pool_address = self._init_pool(
            int(token_a_cfg.get("amount", 1_000_000)),
            int(token_b_cfg.get("amount", 1_000_000)),
        )

        self.datacollector = DataCollector(
            model_reporters={
                "Rate": lambda m: m.pool.rate(),
                "Liquidity": lambda m: m.pool.liquidity(),
                "Reserve_A": lambda m: m.pool.reserve_a,
                "Reserve_B": lambda m: m.pool.reserve_b,
                "Invariant": lambda m: m.pool.reserve_a * m.pool.reserve_b,
            }
        )

        # --- Participants ---
        self._init_traders(self.traders_cfg)
        self._init_liquidity_providers(self.providers_cfg)

    @property
    def pool(self):
        """Fresh snapshot of the simulated pool."""
        return self.program.get_pool(self.pool_address)

    def _init_pool(self, amount_a: int, amount_b: int) -> str:
        donor_a = self.program.create_account(self.token_a, CREATOR, balance=amount_a)
        donor_b = self.program.create_account(self.token_b, CREATOR, balance=amount_b)
        pool = self.program.create_pool(
            CREATOR, donor_a, donor_b, amount_a, amount_b,
            fee_numerator=self.fee_numerator, fee_denominator=self.fee_denominator,
        )
        return pool.address

    def _init_traders(self, cfg: dict):
        """
        Create ``count`` traders, each funded with ``balance`` of both tokens.
        """
        balance = int(cfg.get("balance", 100_000))
        for _ in range(int(cfg.get("count", 0))):
            trader = TraderAgent(
                self,
                program=self.program,
                pool_address=self.pool_address,
                max_trade_fraction=float(cfg.get("max_trade_fraction", 0.01)),
            )
            trader.account_a = self.program.create_account(self.token_a, trader.owner, balance).address
            trader.account_b = self.program.create_account(self.token_b, trader.owner, balance).address

    def _init_liquidity_providers(self, cfg: dict):
        """
        Create ``count`` liquidity providers, each funded with ``balance`` of both tokens.
        """
        balance = int(cfg.get("balance", 100_000))
        pool_token = self.pool.pool_token
        for _ in range(int(cfg.get("count", 0))):
            provider = LiquidityProviderAgent(
                self,
                program=self.program,
                pool_address=self.pool_address,
                deposit_fraction=float(cfg.get("deposit_fraction", 0.01)),
            )
            provider.account_a = self.program.create_account(self.token_a, provider.owner, balance).address
            provider.account_b = self.program.create_account(self.token_b, provider.owner, balance).address
            provider.pool_token_account = self.program.create_account(pool_token, provider.owner).address

    def participants(self):
        """Every agent except the program itself."""
        return self.agents.select(lambda agent: agent is not self.program)

    def step(self):
        """
        Advance the model one tick:
          1. Activate traders and providers in random order.
          2. Advance the program's slot.
          3. Collect pool metrics.
        """
        self.participants().shuffle_do("step")
        self.program.step()
        self.datacollector.collect(self)
        logger.debug("Step %d: %s", self.steps, self.pool)

    def run(self, steps=None):
        """Run ``steps`` ticks (default: the configured number) and return the collected frame."""
        for _ in range(self.num_steps if steps is None else steps):
            self.step()
        return self.datacollector.get_model_vars_dataframe()
