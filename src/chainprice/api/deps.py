from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from chainprice.config import Settings
from chainprice.container import Container
from chainprice.services.backfill import BackfillJobManager
from chainprice.services.price_resolver import PriceResolver


@inject
def get_price_resolver(
    resolver: PriceResolver = Depends(Provide[Container.price_resolver]),
) -> PriceResolver:
    return resolver


@inject
def get_job_manager(
    manager: BackfillJobManager = Depends(Provide[Container.job_manager]),
) -> BackfillJobManager:
    return manager


@inject
def get_settings(settings: Settings = Depends(Provide[Container.settings])) -> Settings:
    return settings
