from telegram import Message, Update
from telegram.ext import ApplicationBuilder, CommandHandler, ContextTypes

from .command_handler import DeployBot
from .commands import HELP_TEXT
from .config import get_settings
from .logging_utils import setup_logging
from .models import Severity

ICONS = {"info": "ℹ️", "success": "✅", "error": "❌"}


class TelegramSink:
    """Replies in the chat the command came from."""

    def __init__(self, message: Message, requester: str):
        self.message = message
        self.requester = requester

    async def notify(self, actor: str, message: str, severity: Severity = "info") -> None:
        mention = "" if actor == self.requester else f"@{actor} "
        await self.message.reply_text(f"{ICONS[severity]} {mention}{message}")


def _actor(update: Update) -> str:
    return update.effective_user.username or str(update.effective_user.id)


async def start(update: Update, context: ContextTypes.DEFAULT_TYPE):
    await update.message.reply_text(f"🤖 Deploy bot ready\n\n{HELP_TEXT}\n\nYour Telegram username: {_actor(update)}")


async def command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    bot: DeployBot = context.application.bot_data["deploybot"]
    actor = _actor(update)
    text = update.message.text or ""
    await bot.handle_chat(actor, text, TelegramSink(update.message, actor))


def build_application(bot: DeployBot, token: str):
    app = ApplicationBuilder().token(token).build()
    app.bot_data["deploybot"] = bot

    app.add_handler(CommandHandler("start", start))
    app.add_handler(CommandHandler(["help", "deploy", "rollback", "pause", "resume", "list"], command))
    return app


def main():
    settings = get_settings()
    if not settings.telegram_bot_token:
        raise RuntimeError("TELEGRAM_BOT_TOKEN is not set")
    logger = setup_logging(settings)

    app = build_application(DeployBot.from_settings(settings), settings.telegram_bot_token)
    logger.info("Telegram deploy bot is running...")
    app.run_polling()


if __name__ == "__main__":
    main()
