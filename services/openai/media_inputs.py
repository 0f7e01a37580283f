"""Utilities to build multimodal input payloads for the Responses API."""

import base64
from typing import Any, Dict, List, Optional


def to_image_data_url(image_bytes: bytes, mime_type: str) -> str:
    """Encode raw image bytes as a data URL suitable for vision input."""
    if not image_bytes:
        raise ValueError("Image bytes are required to build a data URL.")
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def build_inputs(
    system_prompt: str,
    user_prompt: str,
    *,
    image_bytes: Optional[bytes] = None,
    mime_type: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Build the Responses API input array, adding the image to the user turn when given."""
    user_content: List[Dict[str, Any]] = [{"type": "input_text", "text": user_prompt}]
    if image_bytes is not None:
        user_content.append(
            {
                "type": "input_image",
                "image_url": to_image_data_url(image_bytes, mime_type or "image/jpeg"),
                "detail": "high",
            }
        )
    return [
        {
            "type": "message",
            "role": "system",
            "content": [{"type": "input_text", "text": system_prompt}],
        },
        {"type": "message", "role": "user", "content": user_content},
    ]
