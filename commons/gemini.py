"""
Gemini text generation for welcome messages and the in-app assistant.
"""

import logging

from django.conf import settings
from google import genai
from google.genai import types

logger = logging.getLogger(__name__)

ASSISTANT_GREETING = "Hello! I'm the Ubuntium Assistant. How can I help you today?"

ASSISTANT_INSTRUCTION = (
    "You are the Ubuntium Assistant, a friendly helper inside the Ubuntium Global "
    "Commons community app. Answer questions about circles, membership, agents, "
    "distress calls and the community feed. Keep answers short and warm, in the "
    "spirit of 'ubuntu' - 'I am because we are'."
)

WELCOME_PROMPT = (
    "You are a welcoming community assistant for Ubuntium Global Commons. "
    "A new member named {member_name} has just joined the {circle_name} Circle. "
    "Write a short, inspiring, and personal welcome message (2-3 sentences) for "
    "their digital membership card. The tone should be uplifting and reflect the "
    "spirit of 'ubuntu' - 'I am because we are'."
)


class WelcomeMessageError(Exception):
    pass


class AssistantError(Exception):
    pass


def get_client(api_key: str | None = None):
    return genai.Client(api_key=api_key or settings.GEMINI_API_KEY)


def generate_welcome_message(member_name: str, circle_name: str) -> str:
    """Ask Gemini for a membership-card welcome message.

    Raises WelcomeMessageError if the call fails or the model answers with
    an empty message.
    """
    prompt = WELCOME_PROMPT.format(member_name=member_name, circle_name=circle_name)
    try:
        response = get_client().models.generate_content(
            model=settings.GEMINI_MODEL,
            contents=prompt,
        )
        message = (response.text or "").strip()
    except Exception as e:
        logger.error(f"Error generating welcome message with Gemini: {e}", exc_info=True)
        raise WelcomeMessageError(
            f"Failed to generate welcome message for {member_name}. "
            "The AI service may be temporarily unavailable."
        ) from e

    if not message:
        raise WelcomeMessageError(
            f"Failed to generate welcome message for {member_name}. "
            "Gemini returned an empty message."
        )
    return message


def to_history(turns) -> list:
    """Map stored assistant turns to Gemini chat history.

    The opening greeting is never sent back to the model.
    """
    history = []
    for turn in turns:
        if turn.author == 'bot' and turn.text == ASSISTANT_GREETING and not history:
            continue
        role = 'user' if turn.author == 'user' else 'model'
        history.append(types.Content(role=role, parts=[types.Part(text=turn.text)]))
    return history


def assistant_reply(history: list, text: str) -> str:
    try:
        chat = get_client().chats.create(
            model=settings.GEMINI_MODEL,
            history=history,
            config=types.GenerateContentConfig(system_instruction=ASSISTANT_INSTRUCTION),
        )
        response = chat.send_message(text)
    except Exception as e:
        logger.error(f"Assistant call failed: {e}", exc_info=True)
        raise AssistantError("The assistant is unavailable right now. Please try again.") from e

    if not response.text:
        raise AssistantError("The assistant returned an empty reply.")
    return response.text.strip()
