"""ChainDataAccessor поверх фейкового RPC."""

import pytest

from bot.services.errors import (
    ChainDataError,
    InvalidAddressError,
    SolanaRpcError,
    TokenNotFoundError,
)
from bot.services.solana.chain_data import (
    STATUS_FAILED,
    STATUS_SUCCESS,
    TX_DEFI,
    TX_NFT,
    TX_TOKEN_TRANSFER,
    TX_UNKNOWN,
    ChainDataAccessor,
    build_holders,
    classify_transaction,
)
from conftest import MINT, SYSTEM_PROGRAM, TOKEN_PROGRAM, WALLET, make_rpc_transaction, mint_account


@pytest.fixture
def chain(rpc, sleep) -> ChainDataAccessor:
    return ChainDataAccessor(rpc, sleep=sleep)


def signatures(*pairs: tuple[str, int]) -> list[dict]:
    return [{"signature": sig, "blockTime": ts} for sig, ts in pairs]


class TestClassification:
    @pytest.mark.parametrize(
        ("logs", "expected"),
        [
            (["Program log: Instruction: Swap"], TX_DEFI),
            (["Program log: add liquidity"], TX_DEFI),
            (["Program log: Instruction: MintTo"], TX_NFT),
            (["Program log: Instruction: Transfer"], TX_TOKEN_TRANSFER),
            (["Program log: Instruction: Transfer", "Program log: swap"], TX_DEFI),
            (["Program Vote111111111111111111111111111111111111111 success"], TX_UNKNOWN),
            ([], TX_UNKNOWN),
            (None, TX_UNKNOWN),
        ],
    )
    def test_first_matching_rule_wins(self, logs, expected):
        assert classify_transaction(logs) == expected


class TestBalance:
    async def test_lamports_converted_to_sol(self, chain, rpc):
        rpc.balances[WALLET] = 1_500_000_000
        result = await chain.get_balance(WALLET)
        assert result.value == 1.5
        assert not result.is_degraded

    async def test_rpc_failure_degrades_after_retries(self, chain, rpc, sleep):
        rpc.balances[WALLET] = SolanaRpcError("node unavailable")
        result = await chain.get_balance(WALLET)
        assert result.is_degraded
        assert result.value == 0.0
        assert "node unavailable" in result.error
        assert rpc.calls["getBalance"] == 3
        assert sleep.delays == [1.0, 2.0]

    async def test_invalid_address_is_rejected_before_rpc(self, chain, rpc):
        with pytest.raises(InvalidAddressError, match="Invalid Solana wallet address format"):
            await chain.get_balance("0xdeadbeef")
        assert rpc.calls["getBalance"] == 0


class TestRecentTransactions:
    async def test_partial_failures_keep_their_slot(self, chain, rpc):
        rpc.signatures[WALLET] = signatures(("a", 300), ("b", 200), ("c", 100))
        rpc.transactions["a"] = make_rpc_transaction(
            logs=["Program log: Instruction: Transfer"],
            keys=[WALLET, TOKEN_PROGRAM, SYSTEM_PROGRAM],
        )
        rpc.transactions["b"] = SolanaRpcError("timeout")

        records = await chain.get_recent_transactions(WALLET)

        assert [record.signature for record in records] == ["a", "b", "c"]
        first, second, third = records
        assert first.type == TX_TOKEN_TRANSFER
        assert first.amount == -1.0
        assert first.program_ids == (TOKEN_PROGRAM, SYSTEM_PROGRAM)
        assert first.status == STATUS_SUCCESS
        for broken in (second, third):
            assert (broken.type, broken.amount, broken.status) == (TX_UNKNOWN, 0.0, STATUS_FAILED)
        assert second.timestamp == 200

    async def test_error_meta_marks_failed(self, chain, rpc):
        rpc.signatures[WALLET] = signatures(("a", 1))
        rpc.transactions["a"] = make_rpc_transaction(err={"InstructionError": [0, "Custom"]})
        (record,) = await chain.get_recent_transactions(WALLET)
        assert record.status == STATUS_FAILED

    async def test_zero_post_balance_gives_zero_amount(self, chain, rpc):
        rpc.signatures[WALLET] = signatures(("a", 1))
        rpc.transactions["a"] = make_rpc_transaction(pre=5_000, post=0)
        (record,) = await chain.get_recent_transactions(WALLET)
        assert record.amount == 0.0

    async def test_signature_failure_returns_empty_sample(self, chain, rpc):
        rpc.signatures[WALLET] = SolanaRpcError("down")
        assert await chain.get_recent_transactions(WALLET) == []
        assert rpc.calls["getTransaction"] == 0

    async def test_limit_caps_sample(self, chain, rpc):
        rpc.signatures[WALLET] = signatures(*((f"s{i}", 100 - i) for i in range(5)))
        records = await chain.get_recent_transactions(WALLET, limit=2)
        assert len(records) == 2


class TestTokenSupply:
    async def test_parses_mint_account(self, chain, rpc):
        rpc.accounts[MINT] = mint_account(mint_authority=WALLET)
        info = await chain.get_token_supply_info(MINT)
        assert info.supply == 1_000_000_000_000
        assert info.decimals == 6
        assert info.mint_authority == WALLET
        assert info.freeze_authority is None

    async def test_missing_account(self, chain, rpc):
        with pytest.raises(TokenNotFoundError, match="Token account not found"):
            await chain.get_token_supply_info(MINT)

    async def test_unparsed_data(self, chain, rpc):
        rpc.accounts[MINT] = {"data": ["AAAA", "base64"], "owner": TOKEN_PROGRAM}
        with pytest.raises(ChainDataError, match="Invalid token data format"):
            await chain.get_token_supply_info(MINT)

    async def test_rpc_errors_propagate(self, chain, rpc):
        rpc.accounts[MINT] = SolanaRpcError("down")
        with pytest.raises(SolanaRpcError):
            await chain.get_token_supply_info(MINT)
        assert rpc.calls["getAccountInfo"] == 3

    async def test_invalid_mint(self, chain):
        with pytest.raises(InvalidAddressError, match="token address"):
            await chain.get_token_supply_info("mint?")


class TestHolders:
    async def test_percentages_of_returned_total(self, chain, rpc):
        rpc.largest_accounts[MINT] = [
            {"address": "x", "amount": "750"},
            {"address": "y", "amount": "250"},
        ]
        holders = await chain.get_holder_distribution(MINT)
        assert [(h.address, h.balance, h.percentage) for h in holders] == [
            ("x", 750, 75.0),
            ("y", 250, 25.0),
        ]

    async def test_rpc_failure_gives_empty_list(self, chain, rpc):
        rpc.largest_accounts[MINT] = SolanaRpcError("No token accounts found")
        assert await chain.get_holder_distribution(MINT) == []

    def test_zero_total(self):
        holders = build_holders([{"address": "x", "amount": "0"}])
        assert holders[0].percentage == 0.0
