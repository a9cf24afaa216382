"""CoinGeckoPriceFeed: справочник, поиск токена и цены."""

import pytest

from bot.services.errors import PriceFeedError, RateLimitError, TokenNotFoundError
from bot.services.market.price_feed import RATE_LIMIT_MESSAGE, CoinGeckoPriceFeed
from conftest import FakeResponse, FakeSession

BASE_URL = "https://api.coingecko.test/api/v3"
LIST_URL = f"{BASE_URL}/coins/list"
PRICE_URL = f"{BASE_URL}/simple/price"

TOKEN_LIST = [
    {"id": "bitcoin", "symbol": "btc", "name": "Bitcoin"},
    {"id": "solana", "symbol": "sol", "name": "Solana"},
    {"id": "bonk", "symbol": "bonk", "name": "Bonk"},
]
SOL_PRICE = {
    "solana": {
        "usd": 150.5,
        "usd_24h_change": 2.5,
        "usd_7d_change": -1.25,
        "usd_24h_vol": 1_200_000_000,
    }
}


@pytest.fixture
def session() -> FakeSession:
    return FakeSession(
        {
            LIST_URL: FakeResponse(payload=TOKEN_LIST),
            PRICE_URL: FakeResponse(payload=SOL_PRICE),
        }
    )


@pytest.fixture
def feed(session, sleep) -> CoinGeckoPriceFeed:
    return CoinGeckoPriceFeed(BASE_URL + "/", api_key="demo-key", session=session, sleep=sleep)


class TestGetPrice:
    async def test_resolves_alias_and_returns_price(self, feed, session):
        price = await feed.get_price("SOL")

        assert price.token_id == "solana"
        assert price.symbol == "SOL"
        assert price.price == 150.5
        assert price.change_7d == -1.25
        (call,) = session.calls_to(PRICE_URL)
        assert call["params"]["ids"] == "solana"
        assert call["headers"]["x-cg-demo-api-key"] == "demo-key"

    async def test_payload_shape(self, feed):
        payload = (await feed.get_price("solana")).as_dict()
        assert set(payload) == {
            "name", "symbol", "price", "priceChange24h", "priceChange7d",
            "volume24h", "lastUpdated", "tokenId",
        }

    async def test_token_list_fetched_once(self, feed, session):
        await feed.get_price("sol")
        await feed.get_price("solana")
        assert len(session.calls_to(LIST_URL)) == 1
        assert len(session.calls_to(PRICE_URL)) == 2

    async def test_unknown_token(self, feed, session):
        with pytest.raises(TokenNotFoundError, match='Token "dogwifhat" not found'):
            await feed.get_price("dogwifhat")
        assert session.calls_to(PRICE_URL) == []

    async def test_rate_limit_after_retries(self, feed, session, sleep):
        session.route(PRICE_URL, FakeResponse(status=429, reason="Too Many Requests"))
        with pytest.raises(RateLimitError, match=RATE_LIMIT_MESSAGE):
            await feed.get_price("sol")
        assert len(session.calls_to(PRICE_URL)) == 3
        assert sleep.delays == [1.0, 2.0]

    async def test_transient_failure_recovers(self, feed, session):
        session.route(PRICE_URL, [FakeResponse(status=502, reason="Bad Gateway"), FakeResponse(payload=SOL_PRICE)])
        assert (await feed.get_price("sol")).price == 150.5

    async def test_not_found_is_not_retried(self, feed, session):
        session.route(PRICE_URL, FakeResponse(status=404, reason="Not Found"))
        with pytest.raises(TokenNotFoundError, match="not found in the price database"):
            await feed.get_price("sol")
        assert len(session.calls_to(PRICE_URL)) == 1

    async def test_non_positive_price(self, feed, session):
        session.route(PRICE_URL, FakeResponse(payload={"solana": {"usd": 0}}))
        with pytest.raises(PriceFeedError, match="Invalid price data received for Solana"):
            await feed.get_price("sol")

    async def test_missing_price_entry(self, feed, session):
        session.route(PRICE_URL, FakeResponse(payload={}))
        with pytest.raises(PriceFeedError, match="Price data not available for Solana"):
            await feed.get_price("sol")


class TestTokenList:
    async def test_list_failure(self, feed, session):
        session.route(LIST_URL, FakeResponse(status=500, reason="Server Error"))
        with pytest.raises(PriceFeedError, match="Failed to fetch token list"):
            await feed.get_token_list()
        assert len(session.calls_to(LIST_URL)) == 3

    async def test_empty_list_is_rejected(self, feed, session):
        session.route(LIST_URL, FakeResponse(payload=[]))
        with pytest.raises(PriceFeedError, match="Invalid token list response"):
            await feed.get_token_list()

    async def test_find_token(self, feed):
        token = await feed.find_token("bon")
        assert token.id == "bonk"
