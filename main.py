import discord
from discord.ext import commands
from prompty import core
from prompty.personality import Personality
from prompty.providers.openai_provider import OpenAIProvider


class PromptyBot(commands.Bot):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.openai = OpenAIProvider(
            core.OPENAI_API_KEY,
            base_url=core.OPENAI_BASE_URL,
            chat_model=core.OPENAI_CHAT_MODEL,
        )
        self.personality = Personality(core.INITIAL_PERSONALITY)

    async def setup_hook(self):
        await self.load_extension("prompty.cogs.events")
        await self.load_extension("prompty.cogs.commands")


def build_bot() -> commands.Bot:
    intents = discord.Intents.default()

    return PromptyBot(command_prefix=commands.when_mentioned, intents=intents)


def main():
    core.setup_logging()
    core.setup_sentry()
    core.check_environment()
    bot = build_bot()
    bot.run(core.DISCORD_TOKEN, log_handler=None)


if __name__ == "__main__":
    main()
