from dependency_injector import containers, providers

from ghostflow.config import Settings
from ghostflow.infra.blockchain.etherscan_client import EtherscanClient
from ghostflow.infra.blockchain.moralis_client import MoralisClient
from ghostflow.infra.http.rate_limited_client import RateLimitedClient
from ghostflow.parser.registry import build_default_registry
from ghostflow.services.contract_name import ContractNameService
from ghostflow.services.token_metadata import TokenMetadataService
from ghostflow.services.transaction_decoder import TransactionDecoder


def build_moralis_http(settings: Settings) -> RateLimitedClient:
    return RateLimitedClient(
        rate_per_second=settings.moralis_rate_per_second,
        timeout=settings.http_timeout,
        headers={"X-API-Key": settings.moralis_api_key, "accept": "application/json"},
    )


def build_etherscan_http(settings: Settings) -> RateLimitedClient:
    return RateLimitedClient(rate_per_second=settings.etherscan_rate_per_second, timeout=settings.http_timeout)


class Container(containers.DeclarativeContainer):
    wiring_config = containers.WiringConfiguration(modules=["ghostflow.api.deps"])

    settings = providers.Singleton(Settings)

    moralis_http = providers.Singleton(build_moralis_http, settings=settings)
    etherscan_http = providers.Singleton(build_etherscan_http, settings=settings)

    moralis = providers.Singleton(
        MoralisClient,
        http_client=moralis_http,
        chain=settings.provided.chain,
        base_url=settings.provided.moralis_base_url,
    )
    etherscan = providers.Singleton(
        EtherscanClient,
        api_key=settings.provided.etherscan_api_key,
        http_client=etherscan_http,
        chain=settings.provided.chain,
        base_url=settings.provided.etherscan_base_url,
    )

    # Caches live as long as the container
    token_metadata = providers.Singleton(
        TokenMetadataService,
        moralis=moralis,
        batch_size=settings.provided.metadata_batch_size,
    )
    contract_names = providers.Singleton(ContractNameService, etherscan=etherscan)

    registry = providers.Singleton(build_default_registry)
    transaction_decoder = providers.Singleton(
        TransactionDecoder,
        moralis=moralis,
        metadata=token_metadata,
        registry=registry,
    )
