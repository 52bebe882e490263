from pydantic import BaseModel, Field
from typing import List, Optional


class AnalyzePromptRequest(BaseModel):
    prompt: Optional[str] = None


class AnalyzePromptResponse(BaseModel):
    analysis: str


class SuggestTagsRequest(BaseModel):
    prompt_content: Optional[str] = Field(None, alias="promptContent")

    class Config:
        populate_by_name = True


class SuggestTagsResponse(BaseModel):
    tags: List[str]


class FeedbackRequest(BaseModel):
    message: Optional[str] = None


class FeedbackResponse(BaseModel):
    success: bool
