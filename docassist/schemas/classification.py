"""
Document classification schemas.

DocumentClassification is the strict contract the classification provider
must meet. Field names are camelCase on the wire (the prompt asks for that
shape) and snake_case in Python. Any mismatch (unknown document type, a
confidence outside [0, 1], a score or flag sent as a string, a missing
section) rejects the whole response;
ClassificationService turns the pydantic error into MalformedResponseError.
"""

import uuid
from typing import Annotated, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool
from pydantic.alias_generators import to_camel

DocumentType = Literal[
    "user_story",
    "epic",
    "feature",
    "requirement",
    "meeting_notes",
    "technical_doc",
    "process_doc",
    "presentation",
    "data_config",
    "other",
]

# Strict: numeric strings such as "0.9" are rejected, ints are accepted
Confidence = Annotated[float, Field(ge=0.0, le=1.0, strict=True)]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ClassificationDetails(_CamelModel):
    document_type: DocumentType
    confidence: Confidence
    business_purpose: str
    key_themes: List[str] = Field(default_factory=list)
    stakeholders: List[str] = Field(default_factory=list)
    maturity_level: Literal["basic", "intermediate", "advanced"]


class AlternativeFolder(_CamelModel):
    folder_id: Optional[str] = None
    folder_name: str
    reasoning: str = ""


class FolderRecommendation(_CamelModel):
    suggested_folder_id: Optional[str] = None
    suggested_folder_name: str
    confidence: Confidence
    reasoning: str
    alternative_options: List[AlternativeFolder] = Field(default_factory=list)


class OrganizationInsights(_CamelModel):
    is_well_organized: StrictBool
    misplaced_documents: List[str] = Field(default_factory=list)
    suggested_new_folders: List[str] = Field(default_factory=list)
    improvement_recommendations: str = ""


class ContentInsights(_CamelModel):
    completeness: Literal["complete", "incomplete", "draft"]
    quality_score: Confidence
    missing_elements: List[str] = Field(default_factory=list)
    recommendations: str = ""


class DocumentClassification(_CamelModel):
    classification: ClassificationDetails
    folder_recommendation: FolderRecommendation
    organization_insights: OrganizationInsights
    content_insights: ContentInsights


# ── Endpoint contract ─────────────────────────────────────────────────────


class ClassifyRequest(_CamelModel):
    document_id: Optional[uuid.UUID] = None
    content: str = Field(min_length=1)
    title: str = Field(min_length=1)
    file_type: str = "txt"


class ClassifyResponse(_CamelModel):
    success: bool = True
    classification: DocumentClassification
    # Whether the stored document was updated with the result
    document_updated: bool = False
