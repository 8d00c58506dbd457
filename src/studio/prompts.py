"""Prompt text and the persona / camera / setting prompt builders."""

import re
from typing import Dict, Iterable, Optional

from .models.custom import CustomClothing, CustomLocation
from .models.state import ImageStudioState, PromptBuilderFields, VideoStudioState

GENERATION_SYSTEM_INSTRUCTION = """SYSTEM RULES (MANDATORY):
You must generate a strictly photorealistic result based on the reference photo. Do NOT retouch or alter the face. Do NOT smooth skin, fix asymmetry, remove wrinkles, or beautify. Preserve identity at 100% fidelity: bone structure, jawline, pores, nasolabial folds, scars, spots, eye bags, hairline, and natural age.

NO AUTOMATIC IMPROVEMENTS. Do NOT idealize or correct anything (symmetry, weight, teeth, proportions).

DEVICE BAN:
You must NOT show any phone, smartphone, device, screen, HUD, UI layer, frame interface, or camera reflection.
Use only: "front-facing handheld camera." The camera is invisible and out of frame.

Camera angle control:
- Horizontal 1 to 9: 1 = strong left offset (-35 degrees), 5 = centered, 9 = strong right offset (+35 degrees).
- Vertical 1 to 9: 1 = strong low angle (-15 degrees), 5 = selfie-level low angle (-5 degrees), 9 = high angle (+10 degrees).
- Default: horizontal 5, vertical 5, 45-60 cm from the subject, 26-30 mm equivalent focal length.

IMAGE STYLE:
High-quality photorealistic photograph (not CGI, not painting). True-to-life color reproduction. Natural contrast. No beautification or skin smoothing. Real-world shot from a handheld front-facing camera.

PRIORITY STACK:
1. Face identity accuracy
2. Handheld camera geometry
3. Pose consistency
4. Lighting and background realism
5. Clothing
6. Environment realism

If any conflict arises, identity and camera geometry ALWAYS take priority."""

PHOTO_ANALYST_INSTRUCTION = (
    "You are an expert photo analyst. Your task is to analyze the user-provided image and "
    "generate a detailed, descriptive prompt for an AI image generator to recreate a similar "
    "scene. Focus on camera angle, composition, lighting, subject's pose, and environment. "
    "If clothing is not specified by the user, describe it as simple, plain clothing "
    "(e.g., 'a plain white t-shirt and blue jeans'). The generated prompt should be in a "
    "realistic, photorealistic style."
)

IMAGE_ANALYSIS_PROMPT = (
    "Analyze this image and generate a detailed prompt to recreate it realistically. "
    "Describe camera angle, lighting, and composition. For clothing, suggest simple, plain attire."
)

CLOTHING_OPTIONS: Dict[str, str] = {
    "Classic suit": "a classic suit",
    "Casual wear": "casual clothes",
    "Plaid shirt": "a plaid shirt",
    "Grandma's cardigan": "a grandma's sweater with intricate details",
}

LOCATION_OPTIONS: Dict[str, Dict[str, str]] = {
    "Car": {
        "Driving": "driving an everyday compact car",
        "Front passenger seat": "in the front passenger seat of a car",
        "Back seat": "in the back seat of a car",
    },
    "Office": {
        "Luxury": "in a luxury, modern office with glass walls",
        "Standard": (
            "a standard, modern open-plan office with rows of desks, neutral-toned dividers "
            "and other employees working in the slightly blurred background"
        ),
        "Simple": "in a simple, possibly older-style office with basic furniture",
    },
    "Corridor": {
        "Corridor": "in a generic corridor",
    },
    "Mall": {
        "Elevator": "in an elevator in a modern shopping mall",
        "Cafe/bar": "in a cafe/bar inside a bustling shopping mall",
        "Parking (in car)": "sitting in a car within an underground parking garage of a shopping mall",
        "Parking (outside)": "standing in an underground parking garage of a shopping mall, outside a car",
        "Hall": "in the main hall of a busy shopping mall with other people in the background",
    },
}

_HORIZONTAL_DEGREES = {1: "-35°", 2: "-25°", 3: "-15°", 4: "-8°", 5: "0°", 6: "+8°", 7: "+15°", 8: "+25°", 9: "+35°"}
_VERTICAL_DEGREES = {1: "-15°", 2: "-12°", 3: "-9°", 4: "-7°", 5: "-5°", 6: "-2°", 7: "0°", 8: "+5°", 9: "+10°"}


def camera_angle_description(horizontal: int, vertical: int) -> str:
    """Describe the 1..9 camera controls as degree offsets.

    Raises:
        ValueError: If either control is outside 1..9.
    """
    if horizontal not in _HORIZONTAL_DEGREES or vertical not in _VERTICAL_DEGREES:
        raise ValueError(f"Camera controls must be within 1..9, got ({horizontal}, {vertical})")
    return (
        f"The camera angle is set to Horizontal: {_HORIZONTAL_DEGREES[horizontal]}, "
        f"Vertical: {_VERTICAL_DEGREES[vertical]}."
    )


def _collapse(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def clothing_description(name: str, custom: Iterable[CustomClothing] = ()) -> Optional[str]:
    """Resolve a clothing selection; custom items shadow presets of the same name."""
    for item in custom:
        if item.name == name:
            return item.prompt
    return CLOTHING_OPTIONS.get(name)


def location_description(
    category: str, detail: str, custom: Iterable[CustomLocation] = ()
) -> Optional[str]:
    """Resolve a location selection; custom items shadow presets."""
    for item in custom:
        if item.category == category and item.detail == detail:
            return item.prompt
    return LOCATION_OPTIONS.get(category, {}).get(detail)


def _address_line(fields: PromptBuilderFields) -> str:
    if not fields.address:
        return ""
    return f'The background details should be subtly influenced by this address: "{fields.address}".'


def build_image_prompt(state: ImageStudioState) -> str:
    """Assemble a photo prompt from the image studio builder fields."""
    parts = [
        "A realistic, high-resolution photo in a selfie-style video call perspective "
        "(like FaceTime or a Telegram video message). The shot is from the point of view "
        "of the person on the other end of the call.",
        f"The subject is a {state.job_title or 'person'}. The final image should accurately "
        "reflect the facial features and identity of the person in the provided reference photo.",
    ]
    if state.age:
        parts.append(f"They should be depicted as being around {state.age} years old.")
    if state.facial_features:
        parts.append(f"Modify or add these facial features: {state.facial_features}.")
    parts.append(
        "The person is sitting at a table, holding the camera at arm's length, giving a natural, "
        "slightly distorted wide-angle look. They are looking into the camera but are slightly "
        "turned, not in a direct frontal shot."
    )
    parts.append(camera_angle_description(state.camera_horizontal, state.camera_vertical))

    clothing = clothing_description(state.selected_clothing, state.custom_clothing)
    if clothing:
        parts.append(f"They are wearing {clothing}.")

    setting = location_description(
        state.selected_location, state.selected_location_detail, state.custom_locations
    )
    if setting:
        parts.append(f"The setting is {setting}, seen from a personal, close-up video call perspective.")
    else:
        parts.append(
            "The background is a casual, lived-in room with details like a nightstand, a lamp, or a bookshelf."
        )
    parts.append(_address_line(state))
    parts.append("The style should be photorealistic with natural lighting, as if from a phone's front camera.")
    return _collapse(" ".join(parts))


def build_video_prompt(
    state: VideoStudioState,
    custom_clothing: Iterable[CustomClothing] = (),
    custom_locations: Iterable[CustomLocation] = (),
) -> str:
    """Assemble a short-video prompt from the video studio builder fields.

    Custom items come from the image studio, which owns the builder lists.
    """
    parts = [
        f"A short video of a {state.job_title or 'person'}, who looks like the person in the "
        "provided image. The video should be in the style of a casual video call (like FaceTime), "
        "shot from a handheld phone at arm's length.",
        "The person is sitting at a table, looking into the camera and speaking or reacting, "
        "with natural, subtle movements.",
        camera_angle_description(state.camera_horizontal, state.camera_vertical),
    ]
    if state.age:
        parts.append(f"The person is around {state.age} years old.")
    if state.facial_features:
        parts.append(f"Key facial features to include or modify: {state.facial_features}.")

    clothing = clothing_description(state.selected_clothing, custom_clothing)
    if clothing:
        parts.append(f"The person is wearing {clothing}.")

    setting = location_description(state.selected_location, state.selected_location_detail, custom_locations)
    if setting:
        parts.append(f"The setting is {setting}, seen from a personal video call perspective.")
    else:
        parts.append("The background is a casual room setting, slightly blurred, with details like a lamp or a window.")
    parts.append(_address_line(state))
    return _collapse(" ".join(parts))
