"""Document models for the Google Docs collaborator."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class DocumentInfo(BaseModel):
    """A backing document as seen by the session layer."""

    id: str = Field(..., min_length=1, description="Google Docs document ID")
    title: str = Field(..., description="Document title")
    end_index: int = Field(default=1, description="Index just past the last body element")


class GoogleDocument(BaseModel):
    """Subset of the Google Docs ``Document`` resource we rely on."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    document_id: str = Field(..., alias="documentId", min_length=1)
    title: str = ""
    revision_id: str | None = Field(default=None, alias="revisionId")
    body: dict[str, Any] = Field(default_factory=dict)

    @property
    def end_index(self) -> int:
        """End index of the last structural element, 1 for an empty body."""
        content = self.body.get("content") or []
        if not content:
            return 1
        return content[-1].get("endIndex") or 1

    def to_info(self) -> DocumentInfo:
        return DocumentInfo(id=self.document_id, title=self.title, end_index=self.end_index)


class CreateDocumentOptions(BaseModel):
    """Arguments for creating a document."""

    title: str = Field(..., min_length=1, max_length=255)


class AppendContentOptions(BaseModel):
    """Arguments for appending text to a document."""

    document_id: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    insert_index: int | None = Field(default=None, ge=1)
