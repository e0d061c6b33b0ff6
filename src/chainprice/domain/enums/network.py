from enum import Enum


class Network(str, Enum):
    """Supported EVM networks. Values lowercase to match API request bodies."""

    ETHEREUM = "ethereum"
    POLYGON = "polygon"
    ARBITRUM = "arbitrum"
    OPTIMISM = "optimism"
    BASE = "base"
