import logging

import discord
import sentry_sdk
from discord import app_commands
from discord.ext import commands

from prompty.core import GENERIC_ERROR_MESSAGE

logger = logging.getLogger(__name__)


class EventsCog(commands.Cog):
    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self._previous_tree_error = bot.tree.on_error
        bot.tree.on_error = self.on_app_command_error

    async def cog_unload(self):
        self.bot.tree.on_error = self._previous_tree_error

    @commands.Cog.listener()
    async def on_ready(self):
        """Sync application commands once the gateway is ready"""
        synced = await self.bot.tree.sync()
        logger.info("Logged in as %s, synced %d commands", self.bot.user, len(synced))

    async def on_app_command_error(self, interaction: discord.Interaction, error: app_commands.AppCommandError):
        command_name = interaction.command.qualified_name if interaction.command else "unknown"
        logger.error("Unhandled error in command %s", command_name, exc_info=error)
        sentry_sdk.capture_exception(error)

        try:
            # a deferred interaction can only be answered through its followup webhook
            if interaction.response.is_done():
                await interaction.followup.send(GENERIC_ERROR_MESSAGE, ephemeral=True)
            else:
                await interaction.response.send_message(GENERIC_ERROR_MESSAGE, ephemeral=True)
        except discord.HTTPException as response_error:
            logger.error("Encountered error while trying to inform user of error: %r", response_error)


async def setup(bot: commands.Bot):
    await bot.add_cog(EventsCog(bot))
