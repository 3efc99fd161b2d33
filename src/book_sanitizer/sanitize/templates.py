"""Chat prompt templates for the sanitizer.

A template supplies the system prompt, optional few-shot messages, text
wrapped around each chunk, and an optional JSON-schema response format that
constrains the model to return ``{"sanitizedBookExcerpt": "..."}``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

DEFAULT_TEMPLATE_NAME = "book_txt_sanitizer"


class TemplateError(Exception):
    """Raised when a prompt template cannot be loaded."""

    pass


class Message(BaseModel):
    """One chat message."""

    model_config = ConfigDict(frozen=True)

    role: Literal["system", "user", "assistant"]
    content: str


class ChatTemplate(BaseModel):
    """Prompt template applied to every chunk.

    Attributes:
        system_prompt: System message sent first
        messages: Few-shot messages sent between the system prompt and the chunk
        pre_user_message_content: Text prepended to the chunk in the user message
        post_user_message_content: Text appended to the chunk in the user message
        response_format: Passed through as the API ``response_format`` when set
    """

    model_config = ConfigDict(frozen=True)

    system_prompt: str
    messages: list[Message] = Field(default_factory=list)
    pre_user_message_content: str = ""
    post_user_message_content: str = ""
    response_format: dict[str, Any] | None = None

    def user_content(self, text: str) -> str:
        """Wrap a chunk in the template's pre/post user content."""
        return f"{self.pre_user_message_content}{text}{self.post_user_message_content}"


SANITIZED_EXCERPT_SCHEMA: dict[str, Any] = {
    "type": "json_schema",
    "json_schema": {
        "name": "book_chunk",
        "strict": True,
        "schema": {
            "type": "object",
            "properties": {
                "sanitizedBookExcerpt": {
                    "type": "string",
                    "description": "The excerpt with OCR errors, spelling and grammar fixed.",
                },
            },
            "required": ["sanitizedBookExcerpt"],
            "additionalProperties": False,
        },
    },
}

BOOK_TXT_SANITIZER = ChatTemplate(
    system_prompt=(
        "You are an expert editor restoring text from scanned books. "
        "The user sends an excerpt produced by OCR. Fix corrupted characters, "
        "misspelled words, broken hyphenation and obvious grammar errors "
        "without changing the meaning, style or wording of the author. "
        "Remove page numbers, running headers and scanning artifacts. "
        'Respond with JSON of the form {"sanitizedBookExcerpt": "<cleaned text>"}. '
        "If the excerpt contains no readable book text, respond with {}."
    ),
    pre_user_message_content="Sanitize this book excerpt:\n\n",
    response_format=SANITIZED_EXCERPT_SCHEMA,
)

BUILTIN_TEMPLATES: dict[str, ChatTemplate] = {
    DEFAULT_TEMPLATE_NAME: BOOK_TXT_SANITIZER,
}


def load_template(name_or_path: str | Path | None = None) -> ChatTemplate:
    """Load a prompt template.

    Args:
        name_or_path: Built-in template name, path to a YAML template file,
            or None for the default ``book_txt_sanitizer`` template

    Returns:
        ChatTemplate

    Raises:
        TemplateError: If the name is unknown, or the file is missing or invalid
    """
    if name_or_path is None:
        return BUILTIN_TEMPLATES[DEFAULT_TEMPLATE_NAME]

    if isinstance(name_or_path, str) and name_or_path in BUILTIN_TEMPLATES:
        return BUILTIN_TEMPLATES[name_or_path]

    path = Path(name_or_path)
    if not path.is_file():
        raise TemplateError(f"Template not found: {name_or_path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise TemplateError(f"Cannot load template {path}: {e}") from e

    if not isinstance(data, dict):
        raise TemplateError(f"Template {path} must be a YAML mapping")

    try:
        return ChatTemplate(**data)
    except ValidationError as e:
        raise TemplateError(f"Invalid template {path}: {e}") from e
