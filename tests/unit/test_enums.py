from chainprice.domain.enums import JobStatus, Network, PriceSource


class TestEnumsAreStringMixin:
    """All enums use (str, Enum) so they serialize to strings in JSON and DB."""

    def test_network_is_str(self):
        assert isinstance(Network.ETHEREUM, str)
        assert Network.ETHEREUM == "ethereum"

    def test_price_source_is_str(self):
        assert isinstance(PriceSource.INTERPOLATED, str)
        assert PriceSource.INTERPOLATED == "interpolated"

    def test_job_status_is_str(self):
        assert isinstance(JobStatus.PENDING, str)
        assert JobStatus("processing") is JobStatus.PROCESSING


class TestNetwork:
    def test_supported_networks(self):
        assert {n.value for n in Network} == {"ethereum", "polygon", "arbitrum", "optimism", "base"}


class TestJobStatus:
    def test_terminal(self):
        assert JobStatus.COMPLETED.is_terminal
        assert JobStatus.FAILED.is_terminal
        assert not JobStatus.PENDING.is_terminal
        assert not JobStatus.PROCESSING.is_terminal

    def test_active(self):
        assert JobStatus.PENDING.is_active
        assert JobStatus.PROCESSING.is_active
        assert not JobStatus.COMPLETED.is_active
