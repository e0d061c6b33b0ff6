from chainprice.infra.price.alchemy import AlchemyProvider
from chainprice.infra.price.base import PriceProvider

__all__ = ["AlchemyProvider", "PriceProvider"]
