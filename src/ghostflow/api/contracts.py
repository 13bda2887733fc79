from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from eth_utils import is_address

from ghostflow.api.deps import get_contract_name_service
from ghostflow.api.schemas.transactions import ContractNameResponse
from ghostflow.services.contract_name import ContractNameService

router = APIRouter(prefix="/api/contracts", tags=["contracts"])

ContractNamesDep = Annotated[ContractNameService, Depends(get_contract_name_service)]


@router.get("/{address}/name", response_model=ContractNameResponse)
async def get_contract_name(address: str, service: ContractNamesDep) -> ContractNameResponse:
    if not is_address(address):
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Invalid address")
    name = await service.get_name(address)
    return ContractNameResponse(address=address, name=name)
