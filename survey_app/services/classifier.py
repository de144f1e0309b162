"""
Answer-type classification for exported survey answers.

Exports written by this application tag every answer with its question type
("Type N" column), so the tag is authoritative whenever it is present. Older or
hand-made exports only carry the answer text; for those the type is inferred
from the shape of the string.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import config


class AnswerType(str, Enum):
    STAR_RATING = "StarRating"
    CHECKBOX = "Checkbox"
    MCQ = "MCQ"
    TEXT = "Text"


# Fixed sentiment vocabulary, most to least satisfied
SENTIMENT_BUCKETS = (
    "Very Satisfied",
    "Satisfied",
    "Neutral",
    "Dissatisfied",
    "Very Dissatisfied",
)

# Placeholder written by the export for unanswered questions
NO_ANSWER = "No answer"

STAR_PATTERN = re.compile(r"^\s*(\d+)\s*stars?\s*$", re.IGNORECASE)

# Survey question types as authored -> tag written to the export
QUESTION_TYPE_TAGS = {
    'star': AnswerType.STAR_RATING,
    'checkbox': AnswerType.CHECKBOX,
    'text': AnswerType.TEXT,
}


@dataclass(frozen=True)
class Answer:
    """A single answer with its type made explicit."""

    type: AnswerType
    raw: str
    stars: Optional[int] = None
    options: Tuple[str, ...] = ()

    @property
    def is_missing(self) -> bool:
        text = self.raw.strip()
        return text == "" or text == NO_ANSWER

    def keys(self) -> Tuple[str, ...]:
        """Values this answer contributes to a response tally."""
        if self.is_missing:
            return ()
        if self.type is AnswerType.STAR_RATING and self.stars is not None:
            return (format_stars(self.stars),)
        if self.type is AnswerType.CHECKBOX:
            return self.options
        return (self.raw.strip(),)


def format_stars(stars: int) -> str:
    return f"{stars} stars"


def parse_stars(text: str) -> Optional[int]:
    """Return the star count in ``"4 stars"``-style text, else None."""
    match = STAR_PATTERN.match(text or "")
    if not match:
        return None
    return int(match.group(1))


def split_options(text: str) -> Tuple[str, ...]:
    return tuple(opt.strip() for opt in text.split(",") if opt.strip())


def question_type_tag(question: dict) -> Optional[AnswerType]:
    """Export tag for a stored survey question.

    Radio questions are MCQ only when every option is a sentiment word; any
    other radio question (Yes/No, free-form choices) is exported as Text.
    """
    question_type = question.get('type')
    if question_type == 'radio':
        options = [str(opt).strip() for opt in question.get('options') or []]
        if options and all(opt in SENTIMENT_BUCKETS for opt in options):
            return AnswerType.MCQ
        return AnswerType.TEXT
    return QUESTION_TYPE_TAGS.get(question_type)


def classify(question_text: str, answer_text: str,
             comma_as_checkbox: bool = config.COMMA_AS_CHECKBOX) -> AnswerType:
    """Infer the type of one answer from its text; first match wins.

    ``question_text`` is accepted for symmetry with :func:`parse_answer` but the
    decision is made on the answer alone, so one question may present different
    answer shapes across rows.
    """
    text = (answer_text or "").strip()
    if STAR_PATTERN.match(text):
        return AnswerType.STAR_RATING
    if comma_as_checkbox and "," in text:
        return AnswerType.CHECKBOX
    if text in SENTIMENT_BUCKETS:
        return AnswerType.MCQ
    return AnswerType.TEXT


def parse_answer(question_text: str, answer_text: str,
                 tag: Optional[AnswerType] = None,
                 comma_as_checkbox: bool = config.COMMA_AS_CHECKBOX) -> Answer:
    """Build an :class:`Answer`, trusting *tag* over inference when given."""
    raw = answer_text or ""
    answer_type = tag or classify(question_text, raw, comma_as_checkbox)

    if answer_type is AnswerType.STAR_RATING:
        stars = parse_stars(raw)
        if stars is None:
            # Tagged star answers may be written as a bare number
            digits = raw.strip()
            stars = int(digits) if digits.isdigit() else None
        return Answer(type=answer_type, raw=raw, stars=stars)
    if answer_type is AnswerType.CHECKBOX:
        return Answer(type=answer_type, raw=raw, options=split_options(raw))
    return Answer(type=answer_type, raw=raw)


def merge_answer_type(current: Optional[AnswerType], seen: AnswerType) -> AnswerType:
    """Fold a newly seen answer type into a question's recorded type.

    The last classification wins, except that StarRating and MCQ stick once
    recorded and a Text answer never replaces an existing type.
    """
    if current is None:
        return seen
    if current in (AnswerType.STAR_RATING, AnswerType.MCQ):
        return current
    if seen is AnswerType.TEXT:
        return current
    return seen
