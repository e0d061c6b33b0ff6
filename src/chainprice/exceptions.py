"""Error taxonomy shared by the resolver, the backfill worker and the API layer."""


class ChainPriceError(Exception):
    """Base class for all chainprice errors."""


class InvalidRequestError(ChainPriceError):
    """Malformed token, network or timestamp. Raised before any side effect."""


class PriceNotFoundError(ChainPriceError):
    """No tier could produce a price."""

    def __init__(self, token_address: str, network: str, timestamp: int) -> None:
        self.token_address = token_address
        self.network = network
        self.timestamp = timestamp
        super().__init__(f"No price for {network}:{token_address} at {timestamp}")


class BackendUnavailableError(ChainPriceError):
    """Cache or persistence backend could not be reached."""


class JobNotFoundError(ChainPriceError):
    def __init__(self, job_id: int) -> None:
        self.job_id = job_id
        super().__init__(f"Bulk fetch job {job_id} not found")


class ProviderError(ChainPriceError):
    """External price provider failure."""


class RateLimitedError(ProviderError):
    """Provider answered 429. Retryable."""


class TransientProviderError(ProviderError):
    """Timeout, transport error or 5xx. Retryable."""


class PriceNotAvailableError(ProviderError):
    """Provider has no data for the request. Not retried."""
