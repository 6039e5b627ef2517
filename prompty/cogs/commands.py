import io
import logging

import discord
from discord import app_commands
from discord.ext import commands

from prompty.core import (
    EMBED_DESCRIPTION_LIMIT,
    EMBED_TITLE_LIMIT,
    IMAGE_FILENAME,
    check_admin_permissions,
    handle_openai_error,
    truncate,
)
from prompty.providers.errors import OpenAIError

logger = logging.getLogger(__name__)

DONE_MESSAGE = "All done!!!"


def build_image_reply(description: str, image: bytes):
    """Attachment and embed for a generated image."""
    file = discord.File(io.BytesIO(image), filename=IMAGE_FILENAME)
    embed = discord.Embed(title=truncate(description, EMBED_TITLE_LIMIT))
    embed.set_image(url=f"attachment://{IMAGE_FILENAME}")
    return file, embed


def build_answer_embed(question: str, answer: str) -> discord.Embed:
    return discord.Embed(
        title=truncate(question, EMBED_TITLE_LIMIT),
        description=truncate(answer, EMBED_DESCRIPTION_LIMIT),
    )


class CommandsCog(commands.Cog):
    personality = app_commands.Group(name="personality", description="Inspect or change the bot's personality")

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.draw_message_menu = app_commands.ContextMenu(name="Draw Message", callback=self.draw_message)
        self.ask_message_menu = app_commands.ContextMenu(name="Ask Prompty", callback=self.ask_message)
        self.bot.tree.add_command(self.draw_message_menu)
        self.bot.tree.add_command(self.ask_message_menu)

    async def cog_unload(self):
        self.bot.tree.remove_command(self.draw_message_menu.name, type=self.draw_message_menu.type)
        self.bot.tree.remove_command(self.ask_message_menu.name, type=self.ask_message_menu.type)

    # SLASH COMMANDS - IMAGES

    @app_commands.command(name="paint", description="Takes a text prompt and creates a lovely image")
    @app_commands.describe(description="A text description for prompty to work off of")
    async def paint(self, interaction: discord.Interaction, description: str):
        logger.info("Received paint request")
        # Image generation regularly outlives the interaction response window
        await interaction.response.defer()
        logger.info("Submitting paint request to OpenAI")
        try:
            image = await self.bot.openai.generate_image(description)
        except OpenAIError as e:
            await handle_openai_error(interaction, e)
            return

        logger.info("Received valid response from OpenAI")
        file, embed = build_image_reply(description, image)
        await interaction.followup.send(file=file, embed=embed)
        logger.info("Posted painting")

    @app_commands.guild_only()
    async def draw_message(self, interaction: discord.Interaction, message: discord.Message):
        """Draw an image describing this message's content"""
        logger.info("Received paint message request")
        await interaction.response.defer(ephemeral=True)
        if not message.content:
            await interaction.followup.send("❌ That message has no text for me to draw!", ephemeral=True)
            return

        thread = await message.create_thread(name="Drawing")
        logger.info("Submitting paint request to OpenAI")
        try:
            image = await self.bot.openai.generate_image(message.content)
        except OpenAIError as e:
            await handle_openai_error(interaction, e, ephemeral=True)
            return

        logger.info("Received valid response from OpenAI")
        file, embed = build_image_reply(message.content, image)
        await thread.send(file=file, embed=embed)
        await interaction.followup.send(DONE_MESSAGE, ephemeral=True)
        logger.info("Posted painting")

    # SLASH COMMANDS - CHAT

    @app_commands.command(name="ask", description="Ask the bot a question")
    @app_commands.describe(question="A question for the bot to answer")
    async def ask(self, interaction: discord.Interaction, question: str):
        logger.info("Received question")
        await interaction.response.defer()
        personality = await self.bot.personality.get()
        logger.info("Submitting question to OpenAI")
        try:
            answer = await self.bot.openai.ask_chat(question, personality)
        except OpenAIError as e:
            await handle_openai_error(interaction, e)
            return

        logger.info("Received valid response from OpenAI")
        await interaction.followup.send(embed=build_answer_embed(question, answer))
        logger.info("Posted answer")

    @app_commands.guild_only()
    async def ask_message(self, interaction: discord.Interaction, message: discord.Message):
        """Answer this message in a new thread"""
        logger.info("Received ask message request")
        await interaction.response.defer(ephemeral=True)
        if not message.content:
            await interaction.followup.send("❌ That message has no question for me to answer!", ephemeral=True)
            return

        thread = await message.create_thread(name="Answer")
        personality = await self.bot.personality.get()
        logger.info("Submitting question to OpenAI")
        try:
            answer = await self.bot.openai.ask_chat(message.content, personality)
        except OpenAIError as e:
            await handle_openai_error(interaction, e, ephemeral=True)
            return

        logger.info("Received valid response from OpenAI")
        await thread.send(embed=build_answer_embed(message.content, answer))
        await interaction.followup.send(DONE_MESSAGE, ephemeral=True)
        logger.info("Posted answer")

    # SLASH COMMANDS - PERSONALITY

    @personality.command(name="get", description="Show the bot's current personality")
    async def personality_get(self, interaction: discord.Interaction):
        current = await self.bot.personality.get()
        await interaction.response.send_message(
            f"🎭 **Current personality:**\n{truncate(current, 1900)}", ephemeral=True
        )

    @personality.command(name="set", description="Change the bot's personality (Admin only)")
    @app_commands.describe(text="The instructions the bot should follow when answering")
    async def personality_set(self, interaction: discord.Interaction, text: str):
        if not check_admin_permissions(interaction):
            await interaction.response.send_message("❌ Only administrators can use this command!", ephemeral=True)
            return

        try:
            value = await self.bot.personality.set(text)
        except ValueError:
            await interaction.response.send_message("❌ The personality cannot be empty!", ephemeral=True)
            return

        logger.info("Personality updated by %s", interaction.user)
        await interaction.response.send_message(
            f"✅ **Personality updated!**\n{truncate(value, 1900)}", ephemeral=True
        )


async def setup(bot: commands.Bot):
    await bot.add_cog(CommandsCog(bot))
