"""LLM Configuration for the Journal Companion.

This module handles Gemini model initialization with appropriate safety settings.
"""
import logging
from typing import Optional
import google.generativeai as genai
from config.settings import GOOGLE_API_KEY, GEMINI_MODEL_NAME

logger = logging.getLogger(__name__)

# Standard safety settings for a journaling assistant
SAFETY_SETTINGS = [
    {"category": "HARM_CATEGORY_HARASSMENT", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
    {"category": "HARM_CATEGORY_HATE_SPEECH", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
    {"category": "HARM_CATEGORY_SEXUALLY_EXPLICIT", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
    {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
]


def get_gemini_model(model_name: str = GEMINI_MODEL_NAME,
                     system_instruction: Optional[str] = None):
    """
    Configures and returns a Gemini model instance.

    Args:
        model_name: Gemini model to use (default: GEMINI_MODEL_NAME)
        system_instruction: Optional system prompt bound to the model.

    Returns:
        GenerativeModel instance or None if API key is missing.
    """
    if not GOOGLE_API_KEY:
        logger.warning("GOOGLE_API_KEY not set. Chat replies are unavailable.")
        return None

    genai.configure(api_key=GOOGLE_API_KEY)

    model = genai.GenerativeModel(
        model_name=model_name,
        safety_settings=SAFETY_SETTINGS,
        system_instruction=system_instruction or None,
    )
    return model
