"""Prompt builders shared by the cloud and local providers, plus JSON extraction."""

from __future__ import annotations

import json
from typing import Any

from careerbench.models.inputs import (
    CoverLetterInput,
    JobParsingInput,
    ResumeInput,
    SkillSuggestionsInput,
)

RESUME_SYSTEM_PROMPT = """\
You are a resume writing assistant. Your task is to help reorganize and improve existing resume content.
CRITICAL RULES:
- NEVER invent skills, companies, dates, or experiences that don't exist in the input
- ONLY reorganize, rephrase, or restructure existing information
- Output MUST be valid JSON matching the ResumeSuggestions schema
- Be concise and professional
- Focus on achievements and impact"""

COVER_LETTER_SYSTEM_PROMPT = """\
You are a cover letter writing assistant. Your task is to write a professional cover letter based on the user's profile and job description.
CRITICAL RULES:
- NEVER invent skills, companies, dates, or experiences
- ONLY use information provided in the user's profile
- Output MUST be valid JSON matching the CoverLetter schema
- Be professional and tailored to the specific job"""

SKILL_SUGGESTIONS_SYSTEM_PROMPT = """\
You are a career advisor. Your task is to analyze skill gaps between the user's current skills and job requirements.
CRITICAL RULES:
- Identify missing skills that are mentioned in the job description
- Assess importance (high/medium/low) based on how frequently mentioned
- Provide actionable recommendations
- Output MUST be valid JSON matching the SkillSuggestions schema"""

JOB_PARSING_SYSTEM_PROMPT = """\
You are a job description parser. Your task is to extract structured information from job postings.
CRITICAL RULES:
- Extract only information that is explicitly stated in the job description
- NEVER invent or infer skills, responsibilities, or requirements that aren't mentioned
- Output MUST be valid JSON matching the ParsedJob schema
- Be thorough but accurate - only extract what you can clearly identify"""


def resume_prompt(input: ResumeInput) -> str:
    return (
        f"Profile data:\n{json.dumps(input.profile_data, indent=2)}\n\n"
        f"Job description:\n{input.job_description}\n\n"
        "Generate resume suggestions in JSON format."
    )


def cover_letter_prompt(input: CoverLetterInput) -> str:
    return (
        f"Profile data:\n{json.dumps(input.profile_data, indent=2)}\n\n"
        f"Job description:\n{input.job_description}\n\n"
        f"Company: {input.company_name or 'the company'}\n\n"
        "Generate a cover letter in JSON format."
    )


def skill_suggestions_prompt(input: SkillSuggestionsInput) -> str:
    return (
        f"Current skills: {', '.join(input.current_skills)}\n\n"
        f"Job description:\n{input.job_description}\n\n"
        "Generate skill suggestions in JSON format."
    )


def job_parsing_prompt(input: JobParsingInput) -> str:
    return (
        f"Job description:\n{input.job_description}\n\n"
        "Parse this job description and extract structured information in JSON format."
    )


def combine_prompts(system_prompt: str | None, user_prompt: str) -> str:
    """Single prompt string for runtimes without system/user separation."""
    if not system_prompt:
        return user_prompt
    return f"{system_prompt}\n\n{user_prompt}"


def extract_json(text: str) -> str:
    """Pull a JSON object out of free-form model text.

    Tries the outermost ``{...}`` span first, then a fenced ```json block,
    and otherwise returns the text unchanged for the caller to reject.
    """
    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        candidate = text[start:end + 1]
        try:
            json.loads(candidate)
        except ValueError:
            pass
        else:
            return candidate

    fence = text.find("```json")
    if fence != -1:
        body = text[fence + len("```json"):]
        close = body.find("```")
        if close != -1:
            return body[:close].strip()

    return text


def parse_json_text(text: str) -> Any:
    """``json.loads`` over ``extract_json``; raises ``ValueError`` on failure."""
    return json.loads(extract_json(text))
