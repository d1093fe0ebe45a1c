# ═══════════════════════════════════════════════════════════════════
# FILE: core/books/prompts.py
# PURPOSE: System/user prompts for personalized children's books,
#          plus the dedication frame and the offline placeholder story
# ═══════════════════════════════════════════════════════════════════

"""
Gift Book Prompts.

Every optional field contributes its clause only when it carries text, so
an empty form never leaks "None" or an empty bullet section into the prompt.
"""

from __future__ import annotations

from .models import BookRequest, CharacterInfo

NOT_SPECIFIED = "Not specified"
DIVIDER = "━" * 40

# Structural targets handed to the model
TARGET_WORDS = (2000, 2500)
TARGET_CHAPTERS = (3, 4)
MIN_NAME_MENTIONS = 8


# ─────────────────────────────────────────────────────────────────
# SYSTEM PROMPT
# ─────────────────────────────────────────────────────────────────

SYSTEM_PROMPT = (
    "You are a talented children's book author who writes warm, imaginative, "
    "chapter-based stories as personalized gifts. "
    f"Each story runs {TARGET_WORDS[0]}-{TARGET_WORDS[1]} words across "
    f"{TARGET_CHAPTERS[0]}-{TARGET_CHAPTERS[1]} chapters. "
    "Write age-appropriate prose with descriptive paragraphs of several sentences, "
    "natural dialogue, and a child as the hero of the story. "
    "Always weave the recipient's name naturally throughout the narrative."
)


# ─────────────────────────────────────────────────────────────────
# USER PROMPT SECTIONS
# ─────────────────────────────────────────────────────────────────

def _gender_section(gender: str | None) -> str:
    if not gender:
        return ""
    return (
        f"Recipient's Gender: {gender}\n"
        "- Use appropriate pronouns (he/him for Boy, she/her for Girl, they/them for Other)\n"
        "- Keep the story inclusive and respectful\n"
    )


def _language_section(language: str | None) -> str:
    if not language:
        return ""
    return (
        f"Language: Write the ENTIRE story in {language}\n"
        f"- All narration, dialogue and chapter headings must be in {language}\n"
        f"- Use natural grammar and vocabulary for {language}\n"
    )


def _main_topic_section(main_topic: str | None) -> str:
    if not main_topic:
        return ""
    return (
        f"Main Topic: {main_topic}\n"
        "- Make this the central focus of the story\n"
    )


def _appearance_section(appearance: str | None) -> str:
    if not appearance:
        return ""
    return (
        f"Recipient's Appearance: {appearance}\n"
        "- Describe the hero vividly using these details\n"
    )


def format_character(character: CharacterInfo) -> str:
    """One bullet block per supporting character."""
    label = f"- {character.name}"
    if character.type:
        label += f" ({character.type})"
    return (
        f"{label}:\n"
        f"  Appearance: {character.appearance or NOT_SPECIFIED}\n"
        f"  Description: {character.description or NOT_SPECIFIED}\n"
    )


def _characters_section(characters: list[CharacterInfo]) -> str:
    if not characters:
        return ""
    blocks = "".join(format_character(c) for c in characters)
    return (
        "Characters in the Story:\n"
        f"{blocks}"
        "- Include every character naturally and give each a meaningful role\n"
    )


def build_user_prompt(request: BookRequest) -> str:
    """Compose the user instruction for a book request."""
    sections = [
        "Create a personalized children's book as a gift with the following details:\n",
        f"Recipient's Name: {request.name}\n"
        f"Recipient's Age: {request.age} years old\n",
        _gender_section(request.gender),
        _language_section(request.language),
        f"Theme: {request.theme}\n",
        _main_topic_section(request.main_topic),
        f"Tone: {request.tone}\n"
        f"Gift Giver: {request.giver}\n",
        _appearance_section(request.appearance),
        _characters_section(request.characters),
        "Requirements:\n"
        f"- Write a complete story of {TARGET_WORDS[0]}-{TARGET_WORDS[1]} words\n"
        f"- Divide it into {TARGET_CHAPTERS[0]}-{TARGET_CHAPTERS[1]} chapters\n"
        "- Use descriptive paragraphs of 3-5 sentences\n"
        "- Include dialogue between the characters\n"
        f"- Mention {request.name} by name at least {MIN_NAME_MENTIONS} times\n"
        "- Keep it age-appropriate and engaging\n"
        "- Start every chapter with a heading in the form \"Chapter 1: [Title]\"",
    ]
    return "\n".join(section for section in sections if section)


def build_prompt(request: BookRequest) -> tuple[str, str]:
    """Return the (system, user) message pair for a request."""
    return SYSTEM_PROMPT, build_user_prompt(request)


# ─────────────────────────────────────────────────────────────────
# FRAMING & PLACEHOLDER
# ─────────────────────────────────────────────────────────────────

def frame_story(request: BookRequest, story: str) -> str:
    """Prefix a story with the dedication header."""
    return (
        f"A Special Gift for {request.name}\n\n"
        f"From: {request.giver}\n\n"
        f"{DIVIDER}\n\n"
        f"{story.strip()}"
    )


def placeholder_story(request: BookRequest) -> str:
    """Offline story used when the text provider is unavailable."""
    story = (
        "Chapter 1: The Beginning\n\n"
        f"Once upon a time, there was a wonderful person named {request.name}. "
        "This is a personalized story created just for you! "
        f"The theme of this story is {request.theme}, "
        f"and it is told in a {request.tone} tone.\n\n"
        "This is a placeholder story. The story generator was unavailable "
        "when this book was created."
    )
    return frame_story(request, story)
