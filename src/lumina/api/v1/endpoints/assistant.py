"""Writing assistant endpoints for the Lumina API."""

from __future__ import annotations

from fastapi import APIRouter, Response

from lumina.api.v1.dependencies import AssistantDep, CurrentUserDep
from lumina.schemas.assistant import (
    AnalysisResponse,
    AnalyzeRequest,
    DefineRequest,
    DefinitionResponse,
    ManuscriptRequest,
    PolishResponse,
    RefineResponse,
    SpeechRequest,
)
from lumina.services.assistant import Definition, DraftRefinement, PostAnalysis

router = APIRouter(prefix="/assistant", tags=["assistant"])


@router.post("/polish", response_model=PolishResponse)
async def polish(payload: ManuscriptRequest, current_user: CurrentUserDep, assistant: AssistantDep) -> PolishResponse:
    """Rewrite a draft into a more polished manuscript."""
    return PolishResponse(content=await assistant.polish_prose(payload.title, payload.content))


@router.post("/refine", response_model=RefineResponse)
async def refine(payload: ManuscriptRequest, current_user: CurrentUserDep, assistant: AssistantDep) -> DraftRefinement:
    """Fix grammar and tone and suggest a category."""
    return await assistant.refine_draft(payload.title, payload.content)


@router.post("/analyze", response_model=AnalysisResponse)
async def analyze(payload: AnalyzeRequest, current_user: CurrentUserDep, assistant: AssistantDep) -> PostAnalysis:
    """Summarize a manuscript, suggest keywords and rate its readability."""
    return await assistant.analyze_post(payload.content)


@router.post("/define", response_model=DefinitionResponse)
async def define(payload: DefineRequest, assistant: AssistantDep) -> Definition:
    return await assistant.define_word(payload.word, payload.context)


@router.post("/speech", response_class=Response)
async def speech(payload: SpeechRequest, assistant: AssistantDep) -> Response:
    """Narrate text; the body is raw 24 kHz 16-bit mono PCM."""
    audio = await assistant.synthesize_speech(payload.text, payload.voice)
    return Response(content=audio, media_type="audio/L16;rate=24000")
