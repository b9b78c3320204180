"""
Pydantic schema for the uniform envelope passed from sources to the sink
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, Dict, Any


class KissEnvelope(BaseModel):
    """
    One normalized record, ready for indexing.

    Ensures:
    - The document id is never empty
    - The envelope is immutable once built

    The payload is opaque to the pipeline and is written verbatim under
    the source slug when the envelope is rendered.
    """

    id: str = Field(..., min_length=1)
    title: Optional[str] = None
    object_meta: Optional[str] = None
    url: Optional[str] = None
    payload: Any = None

    @field_validator("id")
    @classmethod
    def clean_id(cls, v):
        """Reject ids that are blank after stripping"""
        if not v.strip():
            raise ValueError("Envelope id cannot be blank")
        return v

    model_config = ConfigDict(frozen=True)

    def to_document(self, bron: str) -> Dict[str, Any]:
        """Render the bulk-index document for the given source slug."""
        document: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "object_meta": self.object_meta,
            "object_bron": bron,
        }

        if self.url and self.url.strip():
            document["url"] = self.url

        document[bron] = self.payload
        return document
