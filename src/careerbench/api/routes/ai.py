"""AI capability endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from careerbench.api.deps import get_service
from careerbench.api.schemas import CallLLMRequest, CallLLMResponse
from careerbench.models.inputs import (
    CoverLetterInput,
    JobParsingInput,
    ResumeInput,
    SkillSuggestionsInput,
)
from careerbench.models.outputs import CoverLetter, ParsedJob, ResumeSuggestions, SkillSuggestions
from careerbench.services.ai_service import AIService

router = APIRouter(tags=["ai"])


@router.post("/parse-job")
async def parse_job(body: JobParsingInput, service: AIService = Depends(get_service)) -> ParsedJob:
    return await service.parse_job(body)


@router.post("/resume-suggestions")
async def resume_suggestions(body: ResumeInput, service: AIService = Depends(get_service)) -> ResumeSuggestions:
    return await service.generate_resume_suggestions(body)


@router.post("/cover-letter")
async def cover_letter(body: CoverLetterInput, service: AIService = Depends(get_service)) -> CoverLetter:
    return await service.generate_cover_letter(body)


@router.post("/skill-suggestions")
async def skill_suggestions(
    body: SkillSuggestionsInput, service: AIService = Depends(get_service)
) -> SkillSuggestions:
    return await service.generate_skill_suggestions(body)


@router.post("/call-llm")
async def call_llm(body: CallLLMRequest, service: AIService = Depends(get_service)) -> CallLLMResponse:
    text = await service.call_llm(body.system_prompt, body.user_prompt)
    return CallLLMResponse(text=text)
