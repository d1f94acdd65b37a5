import asyncio
import contextlib
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Depends, FastAPI
from starlette.middleware.cors import CORSMiddleware

from questarena_api.deps import require_api_secret
from questarena_api.errors import register_error_handlers
from questarena_api.graphql.schema import graphql_router
from questarena_api.routers import miniapps, quests, realtime
from questarena_core.infra import settings
from questarena_core.services.orchestrator import QuestOrchestrator

# Use local logs directory in development, /app/logs in Docker
log_dir = Path(os.getenv("LOG_DIR", settings.LOG_DIR))
try:
    log_dir.mkdir(parents=True, exist_ok=True)
except OSError as exc:  # pragma: no cover - defensive logging
    logging.warning("Unable to create log directory %s: %s", log_dir, exc)
else:
    log_path = log_dir / "api.log"
    file_handler = logging.FileHandler(log_path, mode="w")
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    )
    root_logger = logging.getLogger()
    if not any(
        isinstance(handler, logging.FileHandler)
        and getattr(handler, "baseFilename", "") == str(log_path.resolve())
        for handler in root_logger.handlers
    ):
        root_logger.addHandler(file_handler)


async def _start_chat_transport(app: FastAPI, orchestrator: QuestOrchestrator):
    """Run the Discord transport in-process so it shares the engine state."""
    if not (settings.BOT_TOKEN or "").strip():
        logging.info("BOT_TOKEN not set; running without chat transport")
        return None

    from questarena_bot.main import build_bot

    bot = build_bot(orchestrator)
    app.state.bot = bot
    return asyncio.create_task(bot.start(settings.BOT_TOKEN))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    orchestrator = getattr(app.state, "orchestrator", None)
    if orchestrator is None:
        orchestrator = QuestOrchestrator.from_settings()
        app.state.orchestrator = orchestrator

    tasks = [
        asyncio.create_task(
            orchestrator.run_expiry_loop(settings.EXPIRY_SWEEP_INTERVAL_SECONDS)
        )
    ]
    transport = await _start_chat_transport(app, orchestrator)
    if transport is not None:
        tasks.append(transport)
    logging.info("Quest engine started with %s", ", ".join(orchestrator.personas.names))
    yield
    bot = getattr(app.state, "bot", None)
    if bot is not None:
        await bot.close()
    for task in tasks:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError, Exception):
            await task


def create_app(orchestrator: QuestOrchestrator | None = None) -> FastAPI:
    app = FastAPI(
        title="Quest Arena API",
        version="1.0.0",
        description="Real-time quest orchestration for group conversations",
        lifespan=lifespan,
    )
    if orchestrator is not None:
        app.state.orchestrator = orchestrator

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    app.include_router(quests.router)
    app.include_router(miniapps.router)
    app.include_router(realtime.router)
    app.include_router(
        graphql_router, prefix="/graphql", dependencies=[Depends(require_api_secret)]
    )

    @app.get("/health")
    def health():
        return app.state.orchestrator.health()

    @app.get("/healthz")
    def healthz():
        return {"ok": True}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "questarena_api.main:app", host="localhost", port=8000, reload=True, log_level="debug"
    )
