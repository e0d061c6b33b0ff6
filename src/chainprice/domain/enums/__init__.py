from chainprice.domain.enums.job_status import JobStatus
from chainprice.domain.enums.network import Network
from chainprice.domain.enums.price_source import PriceSource

__all__ = [
    "JobStatus",
    "Network",
    "PriceSource",
]
