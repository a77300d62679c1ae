"""Image generation through a ComfyUI workflow.

A workflow is a JSON graph of nodes keyed by node id. Generating an image
means copying the loaded workflow, writing the prompt text and a fresh seed
into the right nodes, queueing it, then polling the history until the output
node reports an image.
"""

import copy
import json
import logging
import random
import time
import uuid
from pathlib import Path
from typing import NamedTuple
from urllib.parse import urlencode

import requests

from academia_profiles.config import Config, get_config
from academia_profiles.fetch import ProfileError
from academia_profiles.normalize import dig

# Module logger
logger = logging.getLogger("academia_profiles.comfyui")

FLUX_WORKFLOW_FILE = "comfyui-fluxdev.json"
MAX_SEED = 2 ** 53 - 1


class ImageGenerationError(ProfileError):
    """ComfyUI could not produce an image."""


class ImageGenerationTimeout(ImageGenerationError):
    """No image appeared in the history within the polling window."""


class WorkflowNodes(NamedTuple):
    """Node ids of a workflow that a request writes to or reads from."""
    positive: str
    negative: str | None
    output: str
    seed: str
    seed_property: str


DEFAULT_NODES = WorkflowNodes(positive="6", negative="7", output="9", seed="3", seed_property="seed")
FLUX_NODES = WorkflowNodes(positive="43", negative=None, output="39", seed="45", seed_property="noise_seed")


def workflow_nodes(workflow_file: str | None) -> WorkflowNodes:
    """Select node ids for a workflow file."""
    if workflow_file == FLUX_WORKFLOW_FILE:
        return FLUX_NODES
    return DEFAULT_NODES


def load_workflow(path: Path) -> dict:
    """Load a workflow JSON file."""
    with open(path, encoding="utf-8") as f:
        workflow = json.load(f)
    logger.info(f"ComfyUI workflow \"{path.name}\" loaded successfully.")
    return workflow


def prepare_workflow(workflow: dict, prompt: dict, nodes: WorkflowNodes, seed: int | None = None) -> dict:
    """Return a copy of ``workflow`` carrying the prompt text and a seed.

    Args:
        workflow: Loaded workflow (left untouched)
        prompt: ``{"positive": str, "negative": str (optional)}``
        nodes: Node ids for this workflow
        seed: Seed to use; random when None
    """
    prepared = copy.deepcopy(workflow)

    if nodes.seed in prepared:
        seed = random.randint(0, MAX_SEED) if seed is None else seed
        prepared[nodes.seed].setdefault("inputs", {})[nodes.seed_property] = seed
        logger.debug(f"Seed for node {nodes.seed} set to {seed}")
    else:
        logger.warning(f"Seed node ID \"{nodes.seed}\" not found in workflow. Using default seed.")

    if nodes.positive not in prepared:
        raise ImageGenerationError(f"Positive prompt node ID \"{nodes.positive}\" not found in workflow.")
    prepared[nodes.positive].setdefault("inputs", {})["text"] = prompt["positive"]

    negative = prompt.get("negative")
    if negative:
        if nodes.negative and nodes.negative in prepared:
            prepared[nodes.negative].setdefault("inputs", {})["text"] = negative
        else:
            logger.warning("Workflow does not support a separate negative prompt. It was ignored.")

    return prepared


def queue_prompt(base_url: str, workflow: dict, client_id: str, timeout: int = 30) -> str:
    """Queue a prepared workflow and return its prompt id."""
    try:
        response = requests.post(
            f"{base_url}/prompt",
            json={"prompt": workflow, "client_id": client_id},
            timeout=timeout,
        )
    except requests.RequestException as e:
        raise ImageGenerationError(f"ComfyUI queue request failed: {e}") from e

    if not 200 <= response.status_code < 300:
        raise ImageGenerationError(
            f"ComfyUI queue request failed with status {response.status_code}: {response.text}"
        )

    try:
        result = response.json()
    except ValueError as e:
        raise ImageGenerationError(f"Invalid JSON from ComfyUI queue request: {e}") from e
    if not isinstance(result, dict):
        raise ImageGenerationError("Unexpected response from ComfyUI queue request.")

    error = result.get("error")
    if error:
        if isinstance(error, dict):
            raise ImageGenerationError(f"ComfyUI error: {error.get('type')} - {error.get('message')}")
        raise ImageGenerationError(f"ComfyUI error: {error}")

    prompt_id = result.get("prompt_id")
    if not prompt_id:
        raise ImageGenerationError(f"ComfyUI did not return a prompt id: {result}")
    return prompt_id


def fetch_history(base_url: str, prompt_id: str, timeout: int = 30) -> dict | None:
    """Fetch the history entry of a prompt, or None if the poll failed."""
    try:
        response = requests.get(f"{base_url}/history/{prompt_id}", timeout=timeout)
    except requests.RequestException as e:
        logger.error(f"Failed to fetch history for prompt {prompt_id}: {e}")
        return None

    if response.status_code != 200:
        logger.error(f"Failed to fetch history for prompt {prompt_id}: {response.reason}")
        return None

    try:
        history = response.json()
    except ValueError as e:
        logger.error(f"Invalid history JSON for prompt {prompt_id}: {e}")
        return None
    return history if isinstance(history, dict) else None


def image_view_url(base_url: str, image: dict) -> str:
    """URL under which ComfyUI serves a generated image."""
    query = urlencode({
        "filename": image.get("filename", ""),
        "subfolder": image.get("subfolder", ""),
        "type": image.get("type", ""),
    })
    return f"{base_url}/view?{query}"


def _first_image(history: dict, prompt_id: str, output_node: str) -> dict | None:
    images = dig(history, prompt_id, "outputs", output_node, "images", default=[], expected=list)
    image = images[0] if images else None
    return image if isinstance(image, dict) else None


def generate_image(
    prompt: dict,
    config: Config | None = None,
    workflow: dict | None = None,
    sleep=time.sleep,
) -> str:
    """Generate an image and return its view URL.

    Args:
        prompt: ``{"positive": str, "negative": str (optional)}``
        config: Configuration (defaults to the global config)
        workflow: Pre-loaded workflow; loaded from the configured file if None
        sleep: Sleep function used between polls

    Raises:
        ImageGenerationError: misconfiguration or a ComfyUI failure
        ImageGenerationTimeout: no image within the polling window
    """
    if not isinstance(prompt, dict) or not prompt.get("positive"):
        raise ValueError("A prompt with a 'positive' text is required.")

    config = config or get_config()
    base_url = config.comfyui_url
    if not base_url:
        raise ImageGenerationError("The ComfyUI URL is not configured. Please set COMFYUI_URL.")

    workflow_file = config.get("comfyui", "workflow_file")
    if workflow is None:
        try:
            workflow = load_workflow(config.comfyui_workflow_path)
        except (OSError, json.JSONDecodeError) as e:
            raise ImageGenerationError(f"Could not load ComfyUI workflow file \"{workflow_file}\": {e}") from e

    nodes = workflow_nodes(workflow_file)
    prepared = prepare_workflow(workflow, prompt, nodes)

    logger.info("Sending prompt to ComfyUI...")
    prompt_id = queue_prompt(base_url, prepared, str(uuid.uuid4()))
    logger.info(f"Prompt queued with ID: {prompt_id}")

    attempts = config.get("comfyui", "poll_attempts")
    interval = config.get("comfyui", "poll_interval")
    for attempt in range(attempts):
        sleep(interval)
        logger.debug(f"Polling for prompt {prompt_id}, attempt {attempt + 1}")

        history = fetch_history(base_url, prompt_id)
        if history is None:
            continue

        image = _first_image(history, prompt_id, nodes.output)
        if image:
            return image_view_url(base_url, image)

    raise ImageGenerationTimeout(f"Image generation timed out after {attempts} polls.")
