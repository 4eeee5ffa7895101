"""
Translation of summary customization options into system instructions.
"""
from typing import Optional

from vidbriefs.core.prompts import CustomizationPrompts
from vidbriefs.models import KeyPointOptions, LLMRole, Message, SummaryOptions


def _key_point_instructions(key_points: KeyPointOptions) -> list[str]:
    if not key_points.enabled:
        return []
    parts = [
        CustomizationPrompts.KEY_POINTS.format(
            depth=key_points.depth.value,
            format=CustomizationPrompts.KEY_POINT_FORMATS[key_points.format.value],
            position=key_points.position.value,
        )
    ]
    if key_points.theme and key_points.theme.strip():
        parts.append(CustomizationPrompts.KEY_POINTS_THEME.format(theme=key_points.theme.strip()))
    if key_points.prefix and key_points.prefix.strip():
        parts.append(CustomizationPrompts.KEY_POINTS_PREFIX.format(prefix=key_points.prefix.strip()))
    return parts


def build_customization_instructions(options: SummaryOptions) -> str:
    """
    Render the option set as one instruction paragraph.

    Args:
        options: Length, tone and key point preferences.

    Returns:
        Instruction text for a system message.
    """
    parts = [
        CustomizationPrompts.LENGTH[options.length.value],
        CustomizationPrompts.TONE.format(tone=options.tone.value),
    ]
    parts.extend(_key_point_instructions(options.key_points))
    return " ".join(parts)


def with_customization(
    messages: list[Message], options: Optional[SummaryOptions]
) -> list[Message]:
    """Prepend the customization system message to an outgoing call."""
    if options is None:
        return list(messages)
    instruction = Message(role=LLMRole.SYSTEM, content=build_customization_instructions(options))
    return [instruction, *messages]
