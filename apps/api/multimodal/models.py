from typing import List
from pydantic import BaseModel, Field

class TranscriptAnalysis(BaseModel):
    title: str
    summary: str
    topics: List[str] = Field(default_factory=list)  # 1-3 normalized labels

class AnalyzeMediaResult(BaseModel):
    title: str
    transcript: str
    summary: str
    topics: List[str]
