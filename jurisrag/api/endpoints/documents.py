from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ...agents.ingestion import IngestionError
from ...config.logging import LoggerMixin
from ...database.base import StorageError
from ...models import DocumentInput
from ...services.document_service import DocumentNotFoundError
from ..dependencies import AppContainer, get_container
from ..schemas import BulkDocumentsRequest, error_detail

document_router = APIRouter()


class DocumentHandler(LoggerMixin):
    async def create(self, doc: DocumentInput, container: AppContainer):
        try:
            document = await container.document_service.add_document(doc)
        except IngestionError as e:
            self.logger.error(f"Error creating document '{doc.title}': {e}")
            return JSONResponse(error_detail("Failed to create document", e), status_code=500)
        return document.model_dump(by_alias=True, mode="json")

    async def create_bulk(self, request: BulkDocumentsRequest, container: AppContainer):
        documents = await container.document_service.add_documents(request.documents)
        return {
            "message": f"Successfully processed {len(documents)} documents",
            "failedCount": len(request.documents) - len(documents),
            "documents": [d.model_dump(by_alias=True, mode="json") for d in documents]
        }

    async def list_all(self, jurisdiction: Optional[str], container: AppContainer):
        summaries = await container.document_service.list_documents(jurisdiction)
        return [s.model_dump(by_alias=True, mode="json") for s in summaries]

    async def full(self, document_id: str, container: AppContainer):
        self.logger.info(f"Full document request for ID: {document_id}")
        try:
            document = await container.document_service.get_full_document(document_id)
        except DocumentNotFoundError as e:
            return JSONResponse(error_detail("Document not found", e), status_code=404)
        return document.model_dump(by_alias=True, mode="json")

    async def delete(self, document_id: str, container: AppContainer):
        try:
            await container.document_service.delete_document(document_id)
        except DocumentNotFoundError as e:
            return JSONResponse(error_detail("Document not found", e), status_code=404)
        except StorageError as e:
            self.logger.error(f"Error deleting document {document_id}: {e}")
            return JSONResponse(error_detail("Failed to delete document", e), status_code=500)
        return {"message": "Document deleted successfully"}

    async def delete_jurisdiction(self, jurisdiction: str, container: AppContainer):
        try:
            deleted = await container.document_service.delete_jurisdiction(jurisdiction)
        except StorageError as e:
            self.logger.error(f"Error deleting documents for {jurisdiction}: {e}")
            return JSONResponse(
                {"success": False, **error_detail("Failed to delete jurisdiction documents", e)},
                status_code=500
            )

        if deleted == 0:
            message = "No documents found for this jurisdiction"
        else:
            message = f"Successfully deleted {deleted} documents for {jurisdiction}"
        return {"success": True, "message": message, "deletedCount": deleted}

    async def jurisdictions(self, container: AppContainer):
        return await container.document_service.list_jurisdictions()


document_handler = DocumentHandler()


@document_router.post("/documents")
async def create_document(doc: DocumentInput, container: AppContainer = Depends(get_container)):
    return await document_handler.create(doc, container)


@document_router.post("/documents/bulk")
async def create_documents(request: BulkDocumentsRequest, container: AppContainer = Depends(get_container)):
    return await document_handler.create_bulk(request, container)


@document_router.get("/documents")
async def list_documents(jurisdiction: Optional[str] = None, container: AppContainer = Depends(get_container)):
    return await document_handler.list_all(jurisdiction, container)


@document_router.get("/documents/full/{document_id}")
async def get_full_document(document_id: str, container: AppContainer = Depends(get_container)):
    return await document_handler.full(document_id, container)


@document_router.delete("/documents/jurisdiction/{jurisdiction}")
async def delete_jurisdiction_documents(jurisdiction: str, container: AppContainer = Depends(get_container)):
    return await document_handler.delete_jurisdiction(jurisdiction, container)


@document_router.delete("/documents/{document_id}")
async def delete_document(document_id: str, container: AppContainer = Depends(get_container)):
    return await document_handler.delete(document_id, container)


@document_router.get("/jurisdictions")
async def list_jurisdictions(container: AppContainer = Depends(get_container)):
    return await document_handler.jurisdictions(container)
