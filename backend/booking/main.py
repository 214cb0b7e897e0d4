import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable

from fastapi import FastAPI, Request, Response

from .config import get_settings
from .database import init_models
from .routers import appointments, availability, dashboard
from .utils.request_id import REQUEST_ID_HEADER, RequestIdFilter, generate_request_id, set_request_id

settings = get_settings()

handler = logging.StreamHandler()
handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s"))
handler.addFilter(RequestIdFilter())

root = logging.getLogger()
root.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
root.handlers.clear()
root.addHandler(handler)


async def request_id_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    request_id = request.headers.get(REQUEST_ID_HEADER) or generate_request_id()
    set_request_id(request_id)
    try:
        response = await call_next(request)
    finally:
        set_request_id(None)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    if settings.create_tables:
        await init_models()
    yield


app = FastAPI(title="Fitting Appointments API", lifespan=lifespan)
app.middleware("http")(request_id_middleware)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


app.include_router(availability.router)
app.include_router(appointments.router)
app.include_router(dashboard.router)
