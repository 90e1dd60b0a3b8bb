"""Prompt templates exposed through prompts/list and prompts/get."""

import logging

from mcp_template.dispatcher import prompt_message
from mcp_template.registry import PROMPT, OperationRegistry
from mcp_template.schema import Param

logger = logging.getLogger(__name__)

STORY_IDEA_SCHEMA = {
    "topics": Param(
        "string", "Comma-separated list of topics or themes to incorporate into the story"
    ),
    "genre": Param("string", "Preferred genre for the story (fantasy, sci-fi, mystery, etc.)"),
    "mood": Param("string", "Emotional tone of the story (dark, uplifting, humorous, etc.)"),
}

STORY_IDEA_TEMPLATE = """You are a creative writing assistant specializing in generating unique and engaging story ideas. Provide detailed story concepts with potential plot points, character ideas, and thematic elements.

I need creative story ideas that incorporate the following elements:

Topics/Themes: {topics}
Genre: {genre}
Mood/Tone: {mood}

Please generate 3 unique story ideas that blend these elements together. For each idea, include:
1. A compelling title
2. A brief premise (1-2 sentences)
3. Main character concept
4. Key plot points or story arc
5. Potential themes or messages

Make the ideas distinct from each other and tailored specifically to my requirements."""


def story_idea_generator(topics: str, genre: str, mood: str):
    logger.info(f"[Prompt] Generating story ideas with topics: {topics}, genre: {genre}, mood: {mood}")
    text = STORY_IDEA_TEMPLATE.format(topics=topics, genre=genre, mood=mood)
    return [prompt_message(text, role="user")]


def register_prompts(registry: OperationRegistry) -> None:
    registry.register(
        "story-idea-generator",
        "Generate creative and engaging story ideas based on provided topics, genre, "
        "target audience, and mood",
        STORY_IDEA_SCHEMA,
        story_idea_generator,
        kind=PROMPT,
    )
