"""Draft social-media and blog copy through an OpenWebUI chat completions API."""

import json
import logging

import requests

from academia_profiles.config import Config, get_config
from academia_profiles.fetch import ProfileError

# Module logger
logger = logging.getLogger("academia_profiles.generate")

COMPLETIONS_PATH = "/api/chat/completions"

SYSTEM_PROMPTS = {
    "bluesky": (
        "You are an academic social media manager. Write a numbered series of five "
        "Bluesky posts that make other researchers want to read the work described "
        "below. Give each post a different hook, add two to four relevant hashtags "
        "per post, and end the series with a call to action using [LINK TO ARTICLE]."
    ),
    "linkedin": (
        "You are a communications specialist bridging academia and industry. Write "
        "one LinkedIn post of at most 500 words presenting the work described below "
        "to professionals in industry, government and the third sector. Avoid "
        "jargon, focus on practical implications, close with a question to the "
        "audience and [LINK TO ARTICLE], and add four to six hashtags."
    ),
    "blog": (
        "You are a science writer. Write a short blog post for a general audience "
        "about the work described below, with a title, an engaging introduction, "
        "the key findings and why they matter."
    ),
    "playground": (
        "You are a helpful assistant. Please respond to the user's query accurately "
        "and concisely."
    ),
}


class CompletionError(ProfileError):
    """The completion service was unavailable or answered unexpectedly."""


def build_item_context(item) -> str:
    """Serialize a publication, grant or whole document as model context."""
    if isinstance(item, str):
        return item
    return json.dumps(item, indent=2, ensure_ascii=False)


def generate_completion(
    model: str,
    messages: list[dict],
    system_prompt: str,
    config: Config | None = None,
) -> str:
    """Generate a chat completion.

    Args:
        model: Model name known to the OpenWebUI instance
        messages: OpenAI-format messages; the system prompt is prepended
        system_prompt: Instructions for the model
        config: Configuration (defaults to the global config)

    Returns:
        The generated text, stripped

    Raises:
        CompletionError: no API URL configured, request failed, or bad response
    """
    config = config or get_config()
    api_url = config.openwebui_api_url
    if not api_url:
        raise CompletionError("OPENWEBUI_API_URL must be set.")

    headers = {"Content-Type": "application/json"}
    if config.openwebui_api_key:
        headers["Authorization"] = f"Bearer {config.openwebui_api_key}"

    payload = {
        "model": model,
        "messages": [{"role": "system", "content": system_prompt}, *messages],
        "stream": False,
    }

    url = api_url.rstrip("/") + COMPLETIONS_PATH
    try:
        response = requests.post(url, json=payload, headers=headers, timeout=config.get("openwebui", "timeout"))
    except requests.RequestException as e:
        logger.error(f"Error calling OpenWebUI API: {e}")
        raise CompletionError(f"Completion request failed: {e}") from e

    if not 200 <= response.status_code < 300:
        raise CompletionError(
            f"API request failed with status {response.status_code}: {response.reason} - {response.text}"
        )

    try:
        data = response.json()
    except ValueError as e:
        raise CompletionError("Invalid response format from OpenWebUI API.") from e

    choices = data.get("choices") if isinstance(data, dict) else None
    content = None
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        message = choices[0].get("message")
        if isinstance(message, dict):
            content = message.get("content")

    if not isinstance(content, str):
        raise CompletionError("Invalid response format from OpenWebUI API.")
    return content.strip()


def generate_post(kind: str, context, model: str | None = None, config: Config | None = None) -> str:
    """Generate copy of the given kind ("bluesky", "linkedin", "blog", "playground")."""
    if kind not in SYSTEM_PROMPTS:
        raise ValueError(f"Unknown post kind: {kind}")

    config = config or get_config()
    model = model or config.openwebui_model
    messages = [{"role": "user", "content": build_item_context(context)}]

    logger.info(f"Generating {kind} copy with model {model}")
    return generate_completion(model, messages, SYSTEM_PROMPTS[kind], config)


def generate_bluesky_posts(context, model: str | None = None, config: Config | None = None) -> str:
    return generate_post("bluesky", context, model, config)


def generate_linkedin_post(context, model: str | None = None, config: Config | None = None) -> str:
    return generate_post("linkedin", context, model, config)


def generate_blog_post(context, model: str | None = None, config: Config | None = None) -> str:
    return generate_post("blog", context, model, config)


def generate_playground_reply(context, model: str | None = None, config: Config | None = None) -> str:
    return generate_post("playground", context, model, config)
