"""Schema and business-rule validation for model output.

Each ``validate_*`` function runs two passes: structural deserialization
into the output model (missing or unknown keys default rather than fail),
then business rules. Any failure raises ``OutputValidationError`` carrying
a readable explanation and the offending payload.
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from careerbench.core.exceptions import OutputValidationError
from careerbench.models.outputs import CoverLetter, ParsedJob, ResumeSuggestions, SkillSuggestions

M = TypeVar("M", bound=BaseModel)

IMPORTANCE_LEVELS = frozenset({"high", "medium", "low"})


def _deserialize(model: type[M], value: Any) -> M:
    if not isinstance(value, dict):
        raise OutputValidationError(
            f"Expected JSON object for {model.__name__}, got {type(value).__name__}", payload=value
        )
    try:
        return model.model_validate(value)
    except PydanticValidationError as exc:
        raise OutputValidationError(
            f"Failed to deserialize {model.__name__}: {exc}", payload=value
        ) from exc


def validate_parsed_job(value: Any) -> ParsedJob:
    parsed = _deserialize(ParsedJob, value)
    score = parsed.seniority_score
    if score is not None and not 0.0 <= score <= 1.0:
        raise OutputValidationError(
            f"seniority_score must be between 0.0 and 1.0, got {score}", payload=value
        )
    return parsed


def validate_resume_suggestions(value: Any) -> ResumeSuggestions:
    resume = _deserialize(ResumeSuggestions, value)
    for idx, section in enumerate(resume.sections):
        if not section.title.strip():
            raise OutputValidationError(f"Resume section {idx} has empty title", payload=value)
        for item_idx, item in enumerate(section.items):
            if not item.heading.strip():
                raise OutputValidationError(
                    f"Resume section {idx} item {item_idx} has empty heading", payload=value
                )
    return resume


def validate_cover_letter(value: Any) -> CoverLetter:
    letter = _deserialize(CoverLetter, value)
    if not letter.body_paragraphs:
        raise OutputValidationError(
            "Cover letter must have at least one body paragraph", payload=value
        )
    for idx, paragraph in enumerate(letter.body_paragraphs):
        if not paragraph.strip():
            raise OutputValidationError(f"Cover letter body paragraph {idx} is empty", payload=value)
    return letter


def validate_skill_suggestions(value: Any) -> SkillSuggestions:
    skills = _deserialize(SkillSuggestions, value)
    for idx, gap in enumerate(skills.skill_gaps):
        if not gap.skill.strip():
            raise OutputValidationError(f"Skill gap {idx} has empty skill name", payload=value)
        if gap.importance.lower() not in IMPORTANCE_LEVELS:
            raise OutputValidationError(
                f"Skill gap {idx} has invalid importance: {gap.importance!r}. "
                "Must be 'high', 'medium', or 'low'",
                payload=value,
            )
    return skills

