import re

from fastapi import APIRouter, Depends, Request

from .api import get_bot
from .command_handler import DeployBot
from .commands import HELP_TEXT
from .config import Settings, get_settings
from .notifier import CollectingSink

router = APIRouter()

MENTION_RE = re.compile(r"<at>.*?</at>", re.IGNORECASE)


@router.post("/messages")
async def teams_messages(req: Request, bot: DeployBot = Depends(get_bot), settings: Settings = Depends(get_settings)):
    if not settings.ms_teams_bot_enabled:
        return {"type": "message", "text": "Teams bot is disabled"}

    body = await req.json()
    text = MENTION_RE.sub("", body.get("text") or "").strip()
    from_user = body.get("from", {}).get("name") or body.get("from", {}).get("id") or ""

    if not text:
        return {"type": "message", "text": HELP_TEXT}

    sink = CollectingSink()
    await bot.handle_chat(from_user, text, sink)
    return {"type": "message", "text": sink.text(from_user)}
