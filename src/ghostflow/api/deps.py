from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from ghostflow.container import Container
from ghostflow.services.contract_name import ContractNameService
from ghostflow.services.transaction_decoder import TransactionDecoder


@inject
def get_transaction_decoder(
    decoder: TransactionDecoder = Depends(Provide[Container.transaction_decoder]),
) -> TransactionDecoder:
    return decoder


@inject
def get_contract_name_service(
    service: ContractNameService = Depends(Provide[Container.contract_names]),
) -> ContractNameService:
    return service
