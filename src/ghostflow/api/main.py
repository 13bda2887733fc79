import logging
import traceback
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from ghostflow.api.contracts import router as contracts_router
from ghostflow.api.transactions import router as transactions_router
from ghostflow.config import settings
from ghostflow.container import Container
from ghostflow.logging_config import configure_logging

logger = logging.getLogger("ghostflow.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    container = Container()
    configure_logging(container.settings().log_level)
    app.state.container = container
    yield
    await container.moralis_http().close()
    await container.etherscan_http().close()


app = FastAPI(title="GhostFlow", version="0.1.0", lifespan=lifespan)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    tb = traceback.format_exception(type(exc), exc, exc.__traceback__)
    logger.error("Unhandled error on %s %s:\n%s", request.method, request.url.path, "".join(tb))
    return JSONResponse(status_code=500, content={"detail": str(exc)})


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(transactions_router)
app.include_router(contracts_router)


@app.get("/api/health")
async def health():
    return {"status": "ok", "version": "0.1.0"}


def serve() -> None:
    uvicorn.run(
        "ghostflow.api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    serve()
