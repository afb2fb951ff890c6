"""Capability input models.

Inputs arrive from the job/profile modules as opaque structured data; only
their shape is described here, their domain semantics are not validated.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CapabilityInput(BaseModel):
    """Base for capability inputs. Serialized camelCase for cache keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def cache_payload(self) -> dict[str, Any]:
        """Canonical request payload used for content-addressed caching."""
        return self.model_dump(mode="json", by_alias=True)


class ResumeOptions(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    tone: Optional[str] = None
    length: Optional[str] = None
    focus: Optional[str] = None


class ResumeInput(CapabilityInput):
    """Profile snapshot plus target job for resume suggestions."""

    profile_data: dict[str, Any] = Field(default_factory=dict)
    job_description: str
    options: Optional[ResumeOptions] = None


class CoverLetterOptions(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    tone: Optional[str] = None
    length: Optional[str] = None
    audience: Optional[str] = None


class CoverLetterInput(CapabilityInput):
    """Profile snapshot, job text and company for a cover letter."""

    profile_data: dict[str, Any] = Field(default_factory=dict)
    job_description: str
    company_name: Optional[str] = None
    options: Optional[CoverLetterOptions] = None


class SkillSuggestionsInput(CapabilityInput):
    """Current skill list compared against a job description."""

    current_skills: list[str] = Field(default_factory=list)
    job_description: str
    experience: Optional[Any] = None


class JobMeta(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    source: Optional[str] = None
    url: Optional[str] = None


class JobParsingInput(CapabilityInput):
    """Raw job posting text to be parsed into structured fields."""

    job_description: str
    job_meta: Optional[JobMeta] = None
