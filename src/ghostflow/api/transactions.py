import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from tenacity import RetryError

from ghostflow.api.deps import get_transaction_decoder
from ghostflow.api.schemas.transactions import DecodedTransactionResponse, to_response
from ghostflow.exceptions import ExternalServiceError, InvalidTransactionHashError, TransactionNotFoundError
from ghostflow.services.transaction_decoder import TransactionDecoder

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/transactions", tags=["transactions"])

DecoderDep = Annotated[TransactionDecoder, Depends(get_transaction_decoder)]


@router.get("/{tx_hash}/flow", response_model=DecodedTransactionResponse)
async def get_transaction_flow(tx_hash: str, decoder: DecoderDep) -> DecodedTransactionResponse:
    """Decode a transaction into its ordered flow of transfers and operations."""
    try:
        decoded = await decoder.decode(tx_hash)
    except InvalidTransactionHashError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    except TransactionNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transaction not found")
    except (ExternalServiceError, RetryError) as exc:
        logger.warning("Receipt provider failed for %s: %s", tx_hash, exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Receipt provider unavailable")
    return to_response(decoded)
