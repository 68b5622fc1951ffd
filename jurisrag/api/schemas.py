from typing import List

from pydantic import Field

from ..models import DocumentInput
from ..models.document import CamelModel


class BulkDocumentsRequest(CamelModel):
    documents: List[DocumentInput] = Field(min_length=1)


def error_detail(error: str, exc: Exception) -> dict:
    """Body of every error response raised by the routes."""
    return {"error": error, "details": str(exc)}
