"""Pydantic models for the Cloud Vision ``images:annotate`` endpoint."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

TEXT_DETECTION = "TEXT_DETECTION"


class VisionBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ImagePayload(VisionBaseModel):
    content: str  # base64


class FeaturePayload(VisionBaseModel):
    type: str = TEXT_DETECTION


class AnnotateImageRequest(VisionBaseModel):
    image: ImagePayload
    features: list[FeaturePayload] = Field(default_factory=lambda: [FeaturePayload()])


class BatchAnnotateRequest(VisionBaseModel):
    requests: list[AnnotateImageRequest]


class StatusPayload(VisionBaseModel):
    code: int = 0
    message: str = ""


class TextAnnotation(VisionBaseModel):
    description: str = ""
    locale: str | None = None


class FullTextAnnotation(VisionBaseModel):
    text: str = ""


class AnnotateImageResponse(VisionBaseModel):
    text_annotations: list[TextAnnotation] = Field(default_factory=list, alias="textAnnotations")
    full_text_annotation: FullTextAnnotation | None = Field(
        default=None, alias="fullTextAnnotation"
    )
    error: StatusPayload | None = None

    @property
    def text(self) -> str:
        """The first annotation holds the whole recognised text block."""
        if self.text_annotations:
            return self.text_annotations[0].description
        if self.full_text_annotation is not None:
            return self.full_text_annotation.text
        return ""


class BatchAnnotateResponse(VisionBaseModel):
    responses: list[AnnotateImageResponse] = Field(default_factory=list)
