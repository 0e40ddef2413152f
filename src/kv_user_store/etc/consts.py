import logging
from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


CONFIG_PATH = Path(__file__).resolve().parent.parent.parent.parent / 'conf'


class ServiceConfig(BaseSettings):
    """
    Configuration settings for the KV user store service.
    """
    model_config = SettingsConfigDict(
        env_prefix='KUS_',
        env_file=CONFIG_PATH / '.env',
        env_file_encoding='utf-8',
    )

    application_name: str = Field(
        'kv-user-store',
        description='Name of the application'
    )
    logging_level: str = Field(
        'INFO',
        description='Logging level for the application'
    )
    bind_address: str = Field(
        '0.0.0.0:8000',
        description='Address the HTTP service listens on',
    )

    store_driver: str = Field(
        'memory',
        description='Key-value store driver to use for the service',
    )
    scan_page_size: int = Field(
        100,
        description='Maximum number of entries returned by one prefix scan page',
        gt=0,
    )
    redis_host: str = Field(
        'localhost',
        description='Redis host for the key-value store',
    )
    redis_port: int = Field(
        6379,
        description='Redis port for the key-value store',
    )
    redis_db: int = Field(
        0,
        description='Redis logical database number',
    )
    redis_namespace: str = Field(
        'kv',
        description='Prefix for every Redis key written by the store',
    )


SERVICE_CONFIG = ServiceConfig()        # type: ignore

LOGGER = logging.getLogger(SERVICE_CONFIG.application_name)
LOGGER.setLevel(SERVICE_CONFIG.logging_level.upper())

if not LOGGER.hasHandlers():
    console_handler = logging.StreamHandler()
    console_handler.setLevel(SERVICE_CONFIG.logging_level.upper())

    formatter = logging.Formatter(
        fmt='[%(asctime)s] [%(process)d] [%(levelname)s]: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S %z'
    )
    console_handler.setFormatter(formatter)

    LOGGER.addHandler(console_handler)

LOGGER.debug('Service configuration loaded: %s', SERVICE_CONFIG.model_dump_json(indent=2))
