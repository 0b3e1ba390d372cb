"""Writing assistant request and response schemas."""

from pydantic import BaseModel, ConfigDict, Field

from lumina.domain import Category


class ManuscriptRequest(BaseModel):
    title: str = ""
    content: str = Field(..., min_length=1)


class PolishResponse(BaseModel):
    content: str


class RefineResponse(BaseModel):
    content: str
    category: Category

    model_config = ConfigDict(from_attributes=True)


class DefineRequest(BaseModel):
    word: str = Field(..., min_length=1, max_length=100)
    context: str = ""


class DefinitionResponse(BaseModel):
    definition: str
    part_of_speech: str
    usage: str
    pronunciation: str | None = None
    synonyms: list[str] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class SpeechRequest(BaseModel):
    text: str = Field(..., min_length=1)
    voice: str = "Puck"


class AnalyzeRequest(BaseModel):
    content: str = Field(..., min_length=1)


class AnalysisResponse(BaseModel):
    summary: str
    seo_keywords: list[str]
    tone: str
    readability_score: float

    model_config = ConfigDict(from_attributes=True)
