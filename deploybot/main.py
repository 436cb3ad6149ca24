from fastapi import FastAPI

from .api import router
from .command_handler import DeployBot
from .config import get_settings
from .logging_utils import setup_logging
from .teams import router as teams_router

app = FastAPI(title="deploybot", version="0.1.0")


@app.on_event("startup")
def _startup() -> None:
    settings = get_settings()
    setup_logging(settings)
    app.state.bot = DeployBot.from_settings(settings)


app.include_router(router, prefix="/api")
app.include_router(teams_router, prefix="/teams")
