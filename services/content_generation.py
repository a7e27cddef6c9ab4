"""
Ad creative generation through an OpenAI-compatible chat completions API.

All three generators share one prompt header (product, audience, tone, selling points)
and differ in what they ask the model to return.
"""
import json
import requests
from flask import current_app

from services.exceptions import ContentGenerationError

AUDIO_SCRIPT_FALLBACK = "Unable to generate audio ad script"
VISUAL_PROMPT_FALLBACK = "Unable to generate visual ad prompt"
TEXT_AD_FALLBACKS = {
    'headline': "Your Product Name",
    'url': "www.example.com",
    'body': "Compelling product description goes here.",
}

def _brief(product, target, tone, selling_points):
    return (
        f"Product/Service: {product}\n"
        f"Target Audience: {target}\n"
        f"Tone: {tone}\n"
        f"Key Selling Points: {selling_points or 'Not specified'}\n"
    )

def _post(path, payload):
    config = current_app.config
    if not config.get('OPENAI_API_KEY'):
        raise ContentGenerationError("OPENAI_API_KEY is not configured.")

    url = f"{config['OPENAI_API_BASE'].rstrip('/')}/{path}"
    headers = {'Authorization': f"Bearer {config['OPENAI_API_KEY']}"}
    try:
        response = requests.post(url, json=payload, headers=headers, timeout=config['OPENAI_TIMEOUT'])
        response.raise_for_status()
        return response.json()
    except requests.exceptions.RequestException as e:
        current_app.logger.error(f"Generative API call to '{path}' failed: {e}", exc_info=True)
        raise ContentGenerationError(f"Generative API call failed: {e}") from e

def _complete(prompt, json_response=False):
    """Sends a single-message chat completion and returns the text of the first choice ('' if empty)."""
    payload = {
        'model': current_app.config['OPENAI_MODEL'],
        'messages': [{'role': 'user', 'content': prompt}],
        'max_tokens': current_app.config['OPENAI_MAX_TOKENS'],
    }
    if json_response:
        payload['response_format'] = {'type': 'json_object'}

    data = _post('chat/completions', payload)
    try:
        return data['choices'][0]['message'].get('content') or ''
    except (KeyError, IndexError, TypeError) as e:
        raise ContentGenerationError("Unexpected chat completion response shape.") from e

def generate_audio_ad(product, target="general audience", tone="friendly", selling_points=""):
    """Returns a 15-30 second radio script, with voice directions in [brackets]."""
    prompt = (
        "Create a compelling radio/audio ad script for the following product/service:\n\n"
        + _brief(product, target, tone, selling_points)
        + "\nThe script should be around 15-30 seconds when read aloud (approximately 40-75 words). "
          "Include instructions for voice acting in [brackets] if needed. Respond with only the script text."
    )
    return _complete(prompt).strip() or AUDIO_SCRIPT_FALLBACK

def generate_text_ad(product, target="general audience", tone="friendly", selling_points=""):
    """
    Returns search/social ad copy.

    Returns:
        dict: {'headline': str, 'url': str, 'body': str}. Keys the model leaves out or
              leaves empty get placeholder text.
    """
    prompt = (
        "Create a text ad in Google/Facebook ad format for the following:\n\n"
        + _brief(product, target, tone, selling_points)
        + "\nRespond in JSON format with the following structure:\n"
          "{\n"
          '  "headline": "The headline of the ad - compelling and under 30 characters",\n'
          '  "url": "A relevant, short display URL",\n'
          '  "body": "The main text of the ad - under 90 characters"\n'
          "}"
    )
    content = _complete(prompt, json_response=True) or '{}'
    try:
        result = json.loads(content)
    except ValueError as e:
        raise ContentGenerationError("Text ad response was not valid JSON.") from e
    if not isinstance(result, dict):
        result = {}

    return {key: result.get(key) or fallback for key, fallback in TEXT_AD_FALLBACKS.items()}

def generate_visual_ad(product, target="general audience", tone="friendly", selling_points=""):
    """Returns a detailed image-generation prompt for a social/banner ad."""
    prompt = (
        "Create a detailed image generation prompt for an advertisement with the following details:\n\n"
        + _brief(product, target, tone, selling_points)
        + "\nThe prompt should describe an eye-catching advertisement that would work well on social media "
          "or banner ads. Focus on visual elements, style, colors, and composition."
    )
    return _complete(prompt).strip() or VISUAL_PROMPT_FALLBACK

def render_image(image_prompt, size='1024x1024'):
    """Sends an image prompt to the image generation endpoint and returns the URL of the first image."""
    data = _post('images/generations', {
        'model': current_app.config['OPENAI_IMAGE_MODEL'],
        'prompt': image_prompt,
        'n': 1,
        'size': size,
    })
    try:
        return data['data'][0]['url']
    except (KeyError, IndexError, TypeError) as e:
        raise ContentGenerationError("Unexpected image generation response shape.") from e
