from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    moralis_api_key: str = ""
    etherscan_api_key: str = ""
    chain: str = "eth"
    moralis_base_url: str = "https://deep-index.moralis.io/api/v2.2"
    etherscan_base_url: str = "https://api.etherscan.io/v2/api"
    moralis_rate_per_second: float = 5.0
    etherscan_rate_per_second: float = 2.85  # one call per ~350 ms
    metadata_batch_size: int = 25
    http_timeout: float = 30.0
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    log_level: str = "INFO"

    class Config:
        env_file = ".env"


settings = Settings()
