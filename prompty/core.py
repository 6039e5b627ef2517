import logging
import os
import sys
from typing import Optional

import discord
import sentry_sdk
from dotenv import load_dotenv

from prompty.personality import DEFAULT_PERSONALITY
from prompty.providers.errors import LimitReachedError, NetworkError, OpenAIError, SafetyError
from prompty.providers.openai_provider import DEFAULT_CHAT_MODEL, OPENAI_BASE_URL as DEFAULT_OPENAI_BASE_URL

logger = logging.getLogger(__name__)

# Environment setup
load_dotenv()
DISCORD_TOKEN = os.getenv('DISCORD_TOKEN')
OPENAI_API_KEY = os.getenv('OPENAI_API_KEY') or os.getenv('OPENAI_TOKEN')
OPENAI_BASE_URL = os.getenv('OPENAI_BASE_URL') or DEFAULT_OPENAI_BASE_URL
OPENAI_CHAT_MODEL = os.getenv('OPENAI_CHAT_MODEL') or DEFAULT_CHAT_MODEL
INITIAL_PERSONALITY = os.getenv('PROMPTY_PERSONALITY') or DEFAULT_PERSONALITY
SENTRY_DSN = os.getenv('SENTRY_DSN')
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

# Discord limits
EMBED_TITLE_LIMIT = 256
EMBED_DESCRIPTION_LIMIT = 4096

IMAGE_FILENAME = "ai_response.png"

SAFETY_MESSAGE = "Sorry, I can't help with that one. It was flagged by the content safety filter."
LIMIT_REACHED_MESSAGE = "Looks like I'm all out of budget this month :("
GENERIC_ERROR_MESSAGE = "Uh oh something went wrong while I was trying to respond!"


def setup_logging():
    """Configure root logging and quieten the chattier libraries."""
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger('discord').setLevel(logging.WARNING)
    logging.getLogger('aiohttp').setLevel(logging.WARNING)


def setup_sentry():
    if not SENTRY_DSN:
        logger.info("SENTRY_DSN not set, error reporting disabled")
        return
    sentry_sdk.init(dsn=SENTRY_DSN, traces_sample_rate=1.0)
    logger.info("Sentry error reporting enabled")


def check_environment():
    """Exit the process when a required credential is missing."""
    missing = []
    if not DISCORD_TOKEN:
        missing.append("DISCORD_TOKEN")
    if not OPENAI_API_KEY:
        missing.append("OPENAI_API_KEY (or OPENAI_TOKEN)")
    if missing:
        logger.critical("Error: missing required environment variables: %s", ", ".join(missing))
        sys.exit(1)


def check_admin_permissions(interaction: discord.Interaction) -> bool:
    """Check if user has administrator permissions"""
    if not interaction.guild:
        return False
    return interaction.user.guild_permissions.administrator


def truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit - 3] + "..."


def error_message_for(error: OpenAIError) -> str:
    """The message a user sees for a failed OpenAI request."""
    if isinstance(error, SafetyError):
        return SAFETY_MESSAGE
    if isinstance(error, LimitReachedError):
        return LIMIT_REACHED_MESSAGE
    # bad request, unauthorized, network and malformed responses look the same to users
    return GENERIC_ERROR_MESSAGE


async def handle_openai_error(interaction: discord.Interaction, error: OpenAIError, ephemeral: bool = False):
    status: Optional[int] = error.status if isinstance(error, NetworkError) else None
    logger.error("OpenAI request resulted in error: kind=%s status=%s detail=%s", error.kind, status, error.detail)
    try:
        await interaction.followup.send(error_message_for(error), ephemeral=ephemeral)
    except discord.HTTPException as response_error:
        logger.error("Encountered error while trying to inform user of error: %r", response_error)
        sentry_sdk.capture_exception(response_error)
