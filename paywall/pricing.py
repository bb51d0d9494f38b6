"""Static route price table."""

from functools import lru_cache
from types import MappingProxyType
from typing import Iterable, Mapping, NamedTuple, Optional


class RoutePrice(NamedTuple):
    """Price of one route, in whole tokens."""
    path: str
    method: str
    price: int


ROUTE_PRICES: tuple[RoutePrice, ...] = (
    RoutePrice("/api/free-data", "GET", 0),
    RoutePrice("/api/premium-data", "GET", 10000),
    RoutePrice("/api/ultra-premium", "GET", 50000),
    RoutePrice("/api/enterprise-data", "GET", 100000),
    RoutePrice("/api/chat", "POST", 1000),
)


class PricingTable:
    """Immutable mapping from (path, method) to a token price."""

    def __init__(self, prices: Mapping[tuple[str, str], int]):
        self._prices = MappingProxyType(dict(prices))

    @classmethod
    def from_routes(cls, routes: Iterable[RoutePrice]) -> "PricingTable":
        prices = {}
        for route in routes:
            if route.price < 0:
                raise ValueError(f"Negative price for {route.method} {route.path}")
            prices[(_normalize_path(route.path), route.method.upper())] = route.price
        return cls(prices)

    def price_for(self, path: str, method: str) -> Optional[int]:
        """Price for a route, or None if the route is not in the table."""
        return self._prices.get((_normalize_path(path), method.upper()))

    def requires_payment(self, path: str, method: str) -> bool:
        price = self.price_for(path, method)
        return price is not None and price > 0

    def items(self) -> list[RoutePrice]:
        return [RoutePrice(path, method, price) for (path, method), price in self._prices.items()]

    def __len__(self) -> int:
        return len(self._prices)


def _normalize_path(path: str) -> str:
    # "/api/chat/" and "/api/chat" are the same route
    if len(path) > 1:
        path = path.rstrip("/")
    return path


@lru_cache
def get_pricing_table() -> PricingTable:
    """Get the pricing table built at startup."""
    return PricingTable.from_routes(ROUTE_PRICES)
