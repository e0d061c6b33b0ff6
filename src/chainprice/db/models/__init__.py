from chainprice.db.models.bulk_fetch_job import BulkFetchJobRecord
from chainprice.db.models.historical_price import HistoricalPriceRecord
from chainprice.db.models.price_query import PriceQueryRecord

__all__ = [
    "BulkFetchJobRecord",
    "HistoricalPriceRecord",
    "PriceQueryRecord",
]
