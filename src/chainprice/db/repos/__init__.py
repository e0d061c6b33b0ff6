from chainprice.db.repos.job_repo import BulkFetchJobRepo
from chainprice.db.repos.price_repo import HistoricalPriceRepo
from chainprice.db.repos.query_repo import PriceQueryRepo

__all__ = ["BulkFetchJobRepo", "HistoricalPriceRepo", "PriceQueryRepo"]
