from chainprice.domain.models.job import BulkFetchJob
from chainprice.domain.models.price import (
    InterpolationResult,
    PricePoint,
    PriceQuery,
    ProviderPrice,
    QueryStats,
    ResolvedPrice,
)

__all__ = [
    "BulkFetchJob",
    "InterpolationResult",
    "PricePoint",
    "PriceQuery",
    "ProviderPrice",
    "QueryStats",
    "ResolvedPrice",
]
