"""Mock AI provider for local development and testing.

Returns canned responses. No real LLM calls.
"""

from __future__ import annotations

import json
from collections import Counter
from typing import Optional

from careerbench.core.exceptions import AIProviderError
from careerbench.models.inputs import (
    CoverLetterInput,
    JobParsingInput,
    ResumeInput,
    SkillSuggestionsInput,
)
from careerbench.models.outputs import CoverLetter, ParsedJob, ResumeSuggestions, SkillSuggestions

JOB_KEY_LENGTH = 50


def job_key(job_description: str) -> str:
    """Key canned responses by the first 50 characters of the job text."""
    return job_description[:JOB_KEY_LENGTH]


class MockProvider:
    """IAIProvider returning registered or default responses.

    ``fail_with`` injects an error for a method name; ``calls`` counts
    invocations per method so tests can assert a provider was never reached.
    """

    def __init__(self) -> None:
        self._parse_job: dict[str, ParsedJob] = {}
        self._resume: dict[str, ResumeSuggestions] = {}
        self._cover_letter: dict[str, CoverLetter] = {}
        self._skills: dict[str, SkillSuggestions] = {}
        self._failures: dict[str, AIProviderError] = {}
        self.calls: Counter[str] = Counter()

    # ---- registration ----

    def register_parse_job(self, job_description: str, response: ParsedJob) -> None:
        self._parse_job[job_key(job_description)] = response

    def register_resume(self, job_description: str, response: ResumeSuggestions) -> None:
        self._resume[job_key(job_description)] = response

    def register_cover_letter(self, job_description: str, response: CoverLetter) -> None:
        self._cover_letter[job_key(job_description)] = response

    def register_skill_suggestions(self, job_description: str, response: SkillSuggestions) -> None:
        self._skills[job_key(job_description)] = response

    def fail_with(self, method: str, error: AIProviderError | None) -> None:
        """Make ``method`` raise ``error``; pass ``None`` to clear."""
        if error is None:
            self._failures.pop(method, None)
        else:
            self._failures[method] = error

    def _enter(self, method: str) -> None:
        self.calls[method] += 1
        error = self._failures.get(method)
        if error is not None:
            raise error

    # ---- IAIProvider ----

    async def generate_resume_suggestions(self, input: ResumeInput) -> ResumeSuggestions:
        self._enter("generate_resume_suggestions")
        registered = self._resume.get(job_key(input.job_description))
        if registered is not None:
            return registered.model_copy(deep=True)
        return ResumeSuggestions(
            summary="Mock resume summary",
            headline="Mock Headline",
            highlights=["Mock highlight"],
        )

    async def generate_cover_letter(self, input: CoverLetterInput) -> CoverLetter:
        self._enter("generate_cover_letter")
        registered = self._cover_letter.get(job_key(input.job_description))
        if registered is not None:
            return registered.model_copy(deep=True)
        return CoverLetter(
            subject="Mock Subject",
            greeting="Dear Hiring Manager,",
            body_paragraphs=["Mock paragraph"],
            closing="Sincerely,",
            signature="Mock Signature",
        )

    async def generate_skill_suggestions(self, input: SkillSuggestionsInput) -> SkillSuggestions:
        self._enter("generate_skill_suggestions")
        registered = self._skills.get(job_key(input.job_description))
        if registered is not None:
            return registered.model_copy(deep=True)
        return SkillSuggestions(recommendations=["Mock recommendation"])

    async def parse_job(self, input: JobParsingInput) -> ParsedJob:
        self._enter("parse_job")
        registered = self._parse_job.get(job_key(input.job_description))
        if registered is not None:
            return registered.model_copy(deep=True)
        return ParsedJob(
            title_suggestion="Mock Job Title",
            company_suggestion="Mock Company",
            location="Mock Location",
            seniority="Mid",
            required_skills=["Mock Skill"],
            responsibilities=["Mock responsibility"],
            remote_friendly=False,
        )

    async def call_llm(self, system_prompt: Optional[str], user_prompt: str) -> str:
        self._enter("call_llm")
        if "Extract professional profile" in user_prompt:
            return json.dumps({
                "profile": {
                    "full_name": "John Doe",
                    "headline": "Software Engineer",
                    "location": "San Francisco, CA",
                },
                "experience": [],
                "skills": [],
                "education": [],
                "certifications": [],
                "portfolio": [],
            })
        return json.dumps({"result": "mock response"})
