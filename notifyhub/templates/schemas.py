"""Template request/response schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class TemplateCreateRequest(BaseModel):
    channel: str = Field(..., min_length=1, max_length=50)
    template_code: str = Field(..., min_length=1, max_length=100)
    subject_template: str | None = Field(None, max_length=500)
    body_template: str = Field(..., min_length=1)
    locale: str = Field("en", min_length=1, max_length=10)
    active: bool = True


class TemplateUpdateRequest(BaseModel):
    subject_template: str | None = Field(None, max_length=500)
    body_template: str | None = Field(None, min_length=1)
    active: bool | None = None


class TemplateResponse(BaseModel):
    id: int
    channel: str
    template_code: str
    subject_template: str | None
    body_template: str
    locale: str
    active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
