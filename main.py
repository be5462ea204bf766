# main.py
from fastapi_limiter import FastAPILimiter
import routes
from contextlib import asynccontextmanager
from util.enums import Environment, Color
from fastapi import Depends, FastAPI, Request
from starlette.middleware.cors import CORSMiddleware
from config.settings import settings
from config.cache import close_redis, get_redis, redis_alive
from controller.controller_dependencies import get_batch_orchestrator
from core.orchestrator import BatchOrchestrator
from fastapi.responses import JSONResponse
from util.logger import init_logger


async def _real_ip(request: Request) -> str:
    if settings.TRUST_PROXY:
        fwd = request.headers.get("x-forwarded-for")
        if fwd:
            return fwd.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


@asynccontextmanager
async def lifespan(fastApi: FastAPI):
    try:
        init_logger()
        print(f"{Color.GREEN}Initializing...{Color.RESET}")
        redis = await get_redis()
        await FastAPILimiter.init(redis, identifier=_real_ip)
        if not settings.OPENAI_API_KEY:
            print(f"{Color.YELLOW}OPENAI_API_KEY not set; generation will fail{Color.RESET}")
        orchestrator = get_batch_orchestrator()
        where = settings.GENERATION_SERVICE_URL or "in-process"
        print(f"{Color.BLUE}Server Started (groups run {where}){Color.RESET}")
    except Exception as e:
        print("Failed to connect to Redis:", e)
        raise

    try:
        yield
    finally:
        # A job cut short by shutdown leaves its items in error, not pending.
        try:
            await orchestrator.shutdown()
        except Exception as e:
            print("Error stopping batch job:", e)

        try:
            await close_redis()
        except Exception as e:
            print("Error closing Redis:", e)

        print(f"{Color.RED}Server Shutdown{Color.RESET}")


app: FastAPI = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.ALLOWED_ORIGIN],
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["Authorization", "Content-Type", "Accept"],
)


@app.get("/healthz")
async def healthz(orchestrator: BatchOrchestrator = Depends(get_batch_orchestrator)):
    job = orchestrator.reconciler.state
    return {"ok": True, "redis": await redis_alive(), "jobRunning": job.running}


@app.exception_handler(429)
async def ratelimit_handler(request: Request, exc):
    return JSONResponse(
        status_code=429,
        content={
            "ok": False,
            "error": "rate_limited",
            "message": "Too many requests. Try again in 60s.",
        },
        headers={"Retry-After": "60"},
    )


routes.register_routes(app)

if __name__ == "__main__":
    import uvicorn

    reload = settings.APP_ENV == Environment.DEV
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=reload)
