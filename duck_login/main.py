from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from duck_login.api import flows
from duck_login.api.routes import router
from duck_login.core import outcome
from duck_login.core import state_machine as sm
from duck_login.observability.logging import log
from duck_login.settings import settings


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Shared Duck API connection pool
    await flows.registry.aclose()


app = FastAPI(title="Duck Address Login API", lifespan=lifespan)

origins = [x.strip() for x in settings.CORS_ORIGINS.split(",") if x.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.get("/")
def root():
    return {
        "status": "ok",
        "message": "Login API is running. Start with POST /login/flows."
    }


@app.get("/health")
def health():
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# Unexpected failures (store down, broken responses) still answer with an
# outcome body, so a front end stays on its current step and can retry.
# ---------------------------------------------------------------------------
@app.exception_handler(Exception)
async def universal_exception_handler(request: Request, exc: Exception):
    flow = flows.registry.get(request.path_params.get("flow_id", ""))
    state = flow.state if flow is not None else sm.ENTER_IDENTIFIER
    log(event="unhandled_error", path=request.url.path, errorType=type(exc).__name__, error=str(exc)[:500])
    return JSONResponse(
        status_code=500,
        content=outcome.Outcome(
            kind=outcome.REQUEST_FAILED,
            state=state,
            message="Unexpected error, please try again",
        ).to_dict(),
    )
