from fractions import Fraction

import pytest
from mesa import Model

from tokenswap_abm.agents.swap_program import SwapProgramAgent, SwapProgramError
from tokenswap_abm.core.errors import EmptyPool

WALLET = "wallet"

# The reference pool: 1000 A at a rate of 2, fee 1/4.
EXPECTED_POOL_LIQUIDITY = 1000
EXPECTED_POOL_RATE = 2
FEE_NUMERATOR = 1
FEE_DENOMINATOR = 4


@pytest.fixture
def program():
    return SwapProgramAgent(Model(seed=1))


@pytest.fixture
def setup(program):
    token_a = program.create_token("A")
    token_b = program.create_token("B")
    donor_a = program.create_account(token_a, WALLET, balance=1_000_000)
    donor_b = program.create_account(token_b, WALLET, balance=1_000_000)
    pool = program.create_pool(
        WALLET,
        donor_a,
        donor_b,
        EXPECTED_POOL_LIQUIDITY,
        EXPECTED_POOL_LIQUIDITY * EXPECTED_POOL_RATE,
        fee_numerator=FEE_NUMERATOR,
        fee_denominator=FEE_DENOMINATOR,
    )
    pool_token_account = program.get_accounts_for_token(WALLET, pool.pool_token)[0]
    return pool, donor_a, donor_b, pool_token_account


def expect_pool_amounts(program, pool, token_a_amount, token_b_amount):
    updated = program.get_pool(pool.address)
    assert updated.liquidity() == token_a_amount
    assert updated.reserve_a == token_a_amount
    assert updated.reserve_b == token_b_amount
    assert updated.rate() == pytest.approx(token_b_amount / token_a_amount)


def balance(program, account):
    return program.get_account(account).balance


def test_create_pool(program, setup):
    pool, donor_a, donor_b, pool_token_account = setup
    assert pool.liquidity() == EXPECTED_POOL_LIQUIDITY
    assert pool.rate() == pytest.approx(EXPECTED_POOL_RATE)
    assert pool.program_id == program.program_id
    assert pool.fee_ratio == Fraction(1, 4)
    assert pool_token_account.balance == EXPECTED_POOL_LIQUIDITY
    assert balance(program, donor_a) == 1_000_000 - 1000
    assert balance(program, donor_b) == 1_000_000 - 2000

    pools = program.get_pools()
    assert len(pools) == 1
    assert pools[0].address == pool.address
    assert "Balance: 1000" in str(pools[0])
    assert "Balance: 2000" in str(pools[0])


def test_deposit_withdraw_and_swaps(program, setup):
    pool, donor_a, donor_b, pool_token_account = setup

    # deposit 10 A (and 20 B): the wallet receives 10 pool tokens
    quote = program.deposit(WALLET, pool.address, donor_a, donor_b, pool_token_account, 10)
    assert quote == (10, 20, 10)
    expect_pool_amounts(program, pool, 1010, 2020)
    assert balance(program, pool_token_account) == 1010

    # withdraw 10 pool tokens for 10 A and 20 B
    amounts = program.withdraw(WALLET, pool.address, pool_token_account, donor_a, donor_b, 10)
    assert amounts == (10, 20)
    expect_pool_amounts(program, pool, 1000, 2000)
    assert balance(program, pool_token_account) == 1000

    # swap 5 A -> 8 B
    a_before, b_before = balance(program, donor_a), balance(program, donor_b)
    swap = program.swap(WALLET, pool.address, donor_a, donor_b, 5)
    assert swap.net_output == 8
    expect_pool_amounts(program, pool, 1005, 1992)
    assert balance(program, donor_a) == a_before - 5
    assert balance(program, donor_b) == b_before + 8

    # swap 5 B -> 3 A
    a_before, b_before = balance(program, donor_a), balance(program, donor_b)
    swap = program.swap(WALLET, pool.address, donor_b, donor_a, 5)
    assert swap.net_output == 3
    expect_pool_amounts(program, pool, 1002, 1997)
    assert balance(program, donor_a) == a_before + 3
    assert balance(program, donor_b) == b_before - 5

    events = [name for name, _ in program.get_events()]
    assert events == ["PoolCreated", "Deposit", "Withdrawal", "Swap", "Swap"]
    assert program.metrics["swaps"] == 2


def test_snapshots_go_stale(program, setup):
    pool, donor_a, donor_b, _ = setup
    program.swap(WALLET, pool.address, donor_a, donor_b, 5)

    fresh = program.get_pool(pool.address)
    assert (pool.reserve_a, pool.reserve_b) == (1000, 2000)
    assert (fresh.reserve_a, fresh.reserve_b) == (1005, 1992)
    assert pool.swap_output(pool.token_a.mint, 100) == 137
    assert fresh.swap_output(fresh.token_a.mint, 100) == 136


def test_swap_rejects_accounts_outside_pool(program, setup):
    pool, donor_a, _, _ = setup
    token_c = program.create_token("C")
    account_c = program.create_account(token_c, WALLET, balance=100)
    with pytest.raises(SwapProgramError):
        program.swap(WALLET, pool.address, donor_a, account_c, 5)
    with pytest.raises(SwapProgramError):
        program.swap(WALLET, pool.address, donor_a, donor_a, 5)


def test_swap_requires_balance_and_signer(program, setup):
    pool, donor_a, donor_b, _ = setup
    with pytest.raises(SwapProgramError):
        program.swap(WALLET, pool.address, donor_a, donor_b, 10_000_000)
    with pytest.raises(SwapProgramError):
        program.swap("someone-else", pool.address, donor_a, donor_b, 5)
    expect_pool_amounts(program, pool, 1000, 2000)


def test_withdraw_more_than_held(program, setup):
    pool, donor_a, donor_b, pool_token_account = setup
    other = program.create_account(pool.pool_token, "other")
    with pytest.raises(SwapProgramError):
        program.withdraw("other", pool.address, other, donor_a, donor_b, 1)
    with pytest.raises(SwapProgramError):
        program.withdraw(WALLET, pool.address, pool_token_account, donor_a, donor_b, 1001)


def test_deposit_requires_pool_token_account(program, setup):
    pool, donor_a, donor_b, _ = setup
    with pytest.raises(SwapProgramError):
        program.deposit(WALLET, pool.address, donor_a, donor_b, donor_a, 10)


def expect_ledger_unchanged(program, pool, donor_a, donor_b, pool_token_account):
    expect_pool_amounts(program, pool, 1000, 2000)
    assert balance(program, donor_a) == 1_000_000 - 1000
    assert balance(program, donor_b) == 1_000_000 - 2000
    assert balance(program, pool_token_account) == 1000
    assert program.supply[pool.pool_token.address] == 1000


def test_failed_deposit_moves_nothing(program, setup):
    pool, donor_a, donor_b, pool_token_account = setup
    # enough A, but only 1 of the 20 B the deposit needs
    short_b = program.create_account(pool.token_b.mint, WALLET, balance=1)
    with pytest.raises(SwapProgramError):
        program.deposit(WALLET, pool.address, donor_a, short_b, pool_token_account, 10)
    expect_ledger_unchanged(program, pool, donor_a, donor_b, pool_token_account)
    assert balance(program, short_b) == 1
    assert program.metrics["deposits"] == 0
    assert [name for name, _ in program.get_events()] == ["PoolCreated"]


def test_failed_withdraw_keeps_pool_tokens(program, setup):
    pool, donor_a, donor_b, pool_token_account = setup
    # the B payout is pointed at an A account
    with pytest.raises(SwapProgramError):
        program.withdraw(WALLET, pool.address, pool_token_account, donor_a, donor_a, 10)
    expect_ledger_unchanged(program, pool, donor_a, donor_b, pool_token_account)
    assert program.metrics["withdrawals"] == 0


def test_rejected_transactions_leave_ledger_unchanged(program, setup):
    pool, donor_a, donor_b, pool_token_account = setup
    with pytest.raises(SwapProgramError):
        program.withdraw(WALLET, pool.address, pool_token_account, donor_a, donor_b, 1001)
    with pytest.raises(SwapProgramError):
        program.deposit(WALLET, pool.address, donor_a, donor_b, donor_a, 10)
    with pytest.raises(SwapProgramError):
        program.deposit("someone-else", pool.address, donor_a, donor_b, pool_token_account, 10)
    expect_ledger_unchanged(program, pool, donor_a, donor_b, pool_token_account)


def test_failed_pool_creation_moves_nothing(program):
    token_a = program.create_token("A")
    token_b = program.create_token("B")
    donor_a = program.create_account(token_a, WALLET, balance=100)
    donor_b = program.create_account(token_b, WALLET, balance=5)
    mints_before = dict(program.mints)
    with pytest.raises(SwapProgramError):
        program.create_pool(WALLET, donor_a, donor_b, 10, 10)
    assert balance(program, donor_a) == 100
    assert balance(program, donor_b) == 5
    assert program.mints == mints_before
    assert program.get_pools() == []


def test_swap_from_drained_reserve(program, setup):
    pool, donor_a, donor_b, pool_token_account = setup
    program.withdraw(WALLET, pool.address, pool_token_account, donor_a, donor_b, 1000)
    drained = program.get_pool(pool.address)
    assert drained.reserve_a == 0
    assert drained.rate() == 0
    with pytest.raises(EmptyPool):
        program.swap(WALLET, pool.address, donor_a, donor_b, 5)


def test_unknown_pool_and_account(program):
    with pytest.raises(SwapProgramError):
        program.get_pool("pool-404")
    with pytest.raises(SwapProgramError):
        program.get_account("account-404")


def test_create_pool_validation(program):
    token_a = program.create_token("A")
    donor_a = program.create_account(token_a, WALLET, balance=100)
    donor_a2 = program.create_account(token_a, WALLET, balance=100)
    with pytest.raises(SwapProgramError):
        program.create_pool(WALLET, donor_a, donor_a2, 10, 10)
    with pytest.raises(ValueError):
        program.create_pool(WALLET, donor_a, donor_a2, 10, 10, fee_numerator=5, fee_denominator=4)


def test_step_advances_slot(program, setup):
    program.step()
    program.step()
    assert program.current_slot == 2
    assert [name for name, _ in program.get_events(0)] == ["PoolCreated"]
    assert program.get_events(2) == []
