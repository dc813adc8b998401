"""
price.py - Token price sources.

The ledger only needs USD prices to convert card payments into OPTIK when a
payment event does not state the OPTIK amount. Two variants:

 - StaticPriceSource: fixed mock table (default, offline).
 - LivePriceSource: HTTP lookup, falling back to a static table on error.
"""

import logging
from typing import Dict, Optional

import requests

logger = logging.getLogger("price")

DEFAULT_PRICES: Dict[str, float] = {
    "OPTIK": 0.05,  # $1 buys 20 OPTIK
    "SOL": 150.0,
    "USDC": 1.0,
}

REQUEST_TIMEOUT = 10


class PriceSource:
    """Interface: USD price per unit of a token symbol."""

    name = "base"

    def get_usd_price(self, symbol: str) -> float:
        raise NotImplementedError

    def close(self):
        pass


class StaticPriceSource(PriceSource):
    name = "static"

    def __init__(self, prices: Optional[Dict[str, float]] = None):
        self._prices = {k.upper(): v for k, v in (prices or DEFAULT_PRICES).items()}

    def get_usd_price(self, symbol: str) -> float:
        try:
            return self._prices[symbol.upper()]
        except KeyError:
            raise KeyError(f"No price for {symbol}")


class LivePriceSource(PriceSource):
    """Fetches ``GET {url}?symbol=SYM`` expecting ``{"price": <float>}``.

    Any network or payload problem degrades to the fallback source.
    """

    name = "live"

    def __init__(self, url: str, fallback: Optional[PriceSource] = None,
                 session: Optional[requests.Session] = None, timeout: float = REQUEST_TIMEOUT):
        self.url = url
        self._fallback = fallback or StaticPriceSource()
        self._session = session or requests.Session()
        self._timeout = timeout

    def get_usd_price(self, symbol: str) -> float:
        try:
            response = self._session.get(self.url, params={"symbol": symbol.upper()}, timeout=self._timeout)
            response.raise_for_status()
            price = float(response.json()["price"])
            if price <= 0:
                raise ValueError(f"non-positive price {price}")
            return price
        except (requests.RequestException, KeyError, TypeError, ValueError) as e:
            logger.warning("Live price for %s unavailable (%s); using %s prices",
                           symbol, e, self._fallback.name)
            return self._fallback.get_usd_price(symbol)

    def close(self):
        self._session.close()


def create_price_source(url: str = "") -> PriceSource:
    if url:
        logger.info("Using live price source at %s", url)
        return LivePriceSource(url)
    return StaticPriceSource()


def usd_to_optik(usd: float, prices: PriceSource) -> float:
    return round(usd / prices.get_usd_price("OPTIK"), 4)
