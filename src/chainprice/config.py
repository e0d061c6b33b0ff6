from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    db_host: str = "localhost"
    db_port: int = 54378
    db_user: str = "postgres"
    db_password: str = "postgres"
    db_name: str = "chainprice"
    redis_url: str = "redis://localhost:6379/0"
    alchemy_api_key: str = "demo"
    cache_backend: str = "redis"  # redis / memory
    cache_ttl_seconds: int = 300
    job_queue_backend: str = "local"  # local / celery
    worker_concurrency: int = 3
    job_poll_interval: float = 5.0  # Seconds between scans for orphaned pending jobs
    backfill_batch_size: int = 10
    provider_batch_delay: float = 1.0
    provider_rate_per_second: float = 5.0
    provider_timeout: float = 30.0
    retry_attempts: int = 3
    retry_initial_wait: float = 1.0
    retry_backoff_factor: float = 2.0
    retry_max_wait: float = 5.0
    debug: bool = True

    @property
    def database_url(self) -> str:
        return f"postgresql+asyncpg://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    class Config:
        env_file = ".env"


settings = Settings()
