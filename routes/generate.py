from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user

from services.content_generation import generate_audio_ad, generate_text_ad, generate_visual_ad, render_image
from services.exceptions import ContentGenerationError

# Blueprint for generative ad content (audio scripts, text ad copy, visual prompts).
generate_bp = Blueprint('generate', __name__, url_prefix='/api/generate')

def _brief_from_request():
    """Reads {product, target?, tone?, selling_points?}. Returns (kwargs, error_response)."""
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        body = {}
    product = body.get('product')
    if not product:
        return None, (jsonify({"message": "Product information is required"}), 400)

    brief = {'product': product}
    for key in ('target', 'tone', 'selling_points'):
        if body.get(key):
            brief[key] = body[key]
    return brief, None

@generate_bp.route('/audio', methods=['POST'])
@login_required
def generate_audio():
    brief, error = _brief_from_request()
    if error:
        return error
    try:
        script = generate_audio_ad(**brief)
    except ContentGenerationError as e:
        current_app.logger.error(f"Error generating audio ad for user {current_user.id}: {e}")
        return jsonify({"message": "Error generating audio ad"}), 500
    return jsonify({"script": script})

@generate_bp.route('/text', methods=['POST'])
@login_required
def generate_text():
    brief, error = _brief_from_request()
    if error:
        return error
    try:
        ad_copy = generate_text_ad(**brief)
    except ContentGenerationError as e:
        current_app.logger.error(f"Error generating text ad for user {current_user.id}: {e}")
        return jsonify({"message": "Error generating text ad"}), 500
    return jsonify({"ad_copy": ad_copy})

@generate_bp.route('/visual', methods=['POST'])
@login_required
def generate_visual():
    """
    Generates an image prompt. With `render_image: true` in the body, and rendering
    enabled in the configuration, the prompt is also rendered and the image URL returned.
    """
    brief, error = _brief_from_request()
    if error:
        return error
    wants_image = request.get_json(silent=True).get('render_image') is True
    try:
        image_prompt = generate_visual_ad(**brief)
        image_url = None
        if wants_image and current_app.config.get('OPENAI_IMAGE_RENDERING_ENABLED'):
            image_url = render_image(image_prompt)
    except ContentGenerationError as e:
        current_app.logger.error(f"Error generating visual ad for user {current_user.id}: {e}")
        return jsonify({"message": "Error generating visual ad"}), 500
    return jsonify({"image_prompt": image_prompt, "image_url": image_url})
