"""
test_price.py - Price source tests.

LivePriceSource is exercised against a stub session object, so no network
access happens.
"""

import pytest
import requests

from optik_arcade.price import (
    DEFAULT_PRICES,
    LivePriceSource,
    StaticPriceSource,
    create_price_source,
    usd_to_optik,
)


class _Response:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self._payload


class _Session:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []
        self.closed = False

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params, timeout))
        if self.error:
            raise self.error
        return self.response

    def close(self):
        self.closed = True


# ── Static ─────────────────────────────────────────────────────────────────

class TestStaticPriceSource:

    def test_defaults(self):
        prices = StaticPriceSource()
        assert prices.get_usd_price("OPTIK") == 0.05
        assert prices.get_usd_price("sol") == DEFAULT_PRICES["SOL"]

    def test_unknown_symbol(self):
        with pytest.raises(KeyError):
            StaticPriceSource().get_usd_price("DOGE")

    def test_custom_table(self):
        assert StaticPriceSource({"optik": 0.1}).get_usd_price("OPTIK") == 0.1

    def test_usd_to_optik(self):
        assert usd_to_optik(1.0, StaticPriceSource()) == 20.0
        assert usd_to_optik(9.99, StaticPriceSource()) == 199.8


# ── Live ───────────────────────────────────────────────────────────────────

class TestLivePriceSource:

    def test_fetches_price(self):
        session = _Session(_Response({"price": 0.08}))
        prices = LivePriceSource("http://prices.local/usd", session=session)
        assert prices.get_usd_price("optik") == 0.08
        assert session.calls == [("http://prices.local/usd", {"symbol": "OPTIK"}, 10)]

    def test_falls_back_on_network_error(self):
        session = _Session(error=requests.ConnectionError("down"))
        prices = LivePriceSource("http://prices.local/usd", session=session)
        assert prices.get_usd_price("OPTIK") == 0.05

    def test_falls_back_on_http_error(self):
        session = _Session(_Response({}, status_code=502))
        prices = LivePriceSource("http://prices.local/usd", session=session)
        assert prices.get_usd_price("SOL") == 150.0

    def test_falls_back_on_bad_payload(self):
        session = _Session(_Response({"value": 1}))
        prices = LivePriceSource("http://prices.local/usd", session=session)
        assert prices.get_usd_price("OPTIK") == 0.05

    def test_rejects_non_positive_price(self):
        session = _Session(_Response({"price": 0}))
        fallback = StaticPriceSource({"OPTIK": 0.2})
        prices = LivePriceSource("http://prices.local/usd", fallback=fallback, session=session)
        assert prices.get_usd_price("OPTIK") == 0.2

    def test_close_closes_session(self):
        session = _Session()
        LivePriceSource("http://prices.local/usd", session=session).close()
        assert session.closed


class TestCreatePriceSource:

    def test_static_without_url(self):
        assert create_price_source("").name == "static"

    def test_live_with_url(self):
        source = create_price_source("http://prices.local/usd")
        assert source.name == "live"
        source.close()
