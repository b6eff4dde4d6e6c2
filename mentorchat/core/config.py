# mentorchat/core/config.py
"""Application configuration using Pydantic."""
from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    database_url: str
    redis_url: str = 'redis://localhost:6379/0'
    jwt_secret_key: str
    jwt_algorithm: str = 'HS256'

    app_version: str = '1.0.0'
    environment: str = 'development'
    log_level: str = 'info'
    allowed_origins: List[str] = ['*']

    # 'memory' fans out inside one worker, 'redis' across workers via pub/sub
    realtime_backend: str = 'memory'

    read_retry_attempts: int = 3
    read_retry_base_delay: float = 0.2
    max_allocation_attempts: int = 10

    model_config = {
        'env_file': '.env',
        'extra': 'ignore'
    }

settings = Settings()
