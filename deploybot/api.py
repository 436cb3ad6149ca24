from fastapi import APIRouter, Depends, Request

from .command_handler import DeployBot
from .models import ChatRequest, ChatResponse
from .notifier import CollectingSink

router = APIRouter()


def get_bot(request: Request) -> DeployBot:
    return request.app.state.bot


@router.get("/health")
def health():
    return {"ok": True, "service": "deploybot"}


@router.post("/chat", response_model=ChatResponse)
async def chat(req: ChatRequest, bot: DeployBot = Depends(get_bot)):
    sink = CollectingSink()
    outcome = await bot.handle_chat(req.user, req.message, sink)
    return ChatResponse(
        ok=outcome.ok,
        state=outcome.state.value,
        message=outcome.message,
        notifications=sink.notifications,
    )
