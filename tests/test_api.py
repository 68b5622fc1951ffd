"""Tests for the FastAPI endpoints, backed by in-memory storage and scripted providers."""

import json

import pytest
from fastapi.testclient import TestClient

from jurisrag.api.dependencies import build_container
from jurisrag.api.main import create_app
from jurisrag.config import RetrievalMode
from jurisrag.models import CLARIFICATION_NEEDED, DocumentInput

from conftest import DEFAULT_SUGGESTIONS, FakeEmbeddingProvider, long_text


@pytest.fixture
def container(settings, storage, generation_provider, embedding_provider):
    return build_container(
        settings,
        storage=storage,
        generation_provider=generation_provider,
        embedding_provider=embedding_provider
    )


@pytest.fixture
def client(container):
    with TestClient(create_app(container)) as client:
        yield client


def document_payload(title="EU AI Act", content="The AI Act regulates high-risk AI systems.", jurisdiction="eu"):
    return {
        "title": title,
        "content": content,
        "jurisdiction": jurisdiction,
        "documentType": "regulation",
        "sourceUrl": "https://example.org/ai-act"
    }


@pytest.mark.asyncio
async def test_container_embeds_queries_with_query_provider(settings, storage, generation_provider):
    document_embeddings = FakeEmbeddingProvider()
    query_embeddings = FakeEmbeddingProvider()
    container = build_container(
        settings.model_copy(update={"retrieval_strategy": RetrievalMode.SEMANTIC}),
        storage=storage,
        generation_provider=generation_provider,
        embedding_provider=document_embeddings,
        query_embedding_provider=query_embeddings
    )
    await container.document_service.add_document(DocumentInput(
        title="AI Act", content="Biometric identification is restricted.",
        jurisdiction="eu", document_type="regulation"
    ))

    results = await container.master_agent.agents["eu"].retrieve("biometric identification")

    assert [r.document.title for r in results] == ["AI Act"]
    assert document_embeddings.calls == ["Biometric identification is restricted."]
    assert query_embeddings.calls == ["biometric identification"]

def test_container_reuses_document_provider_for_queries(container, embedding_provider):
    assert container.query_embedding_provider is embedding_provider

def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["database"] == "connected"
    assert body["version"] == "0.1.0"

def test_query_returns_camel_case_payload(client):
    client.post("/api/documents", json=document_payload())

    response = client.post("/api/query", json={"message": "Compare EU and US"})

    assert response.status_code == 200
    body = response.json()
    assert body["conversationId"]
    assert [r["agentId"] for r in body["responses"]] == ["us-federal", "eu"]
    assert body["responses"][1]["sources"][0]["title"] == "EU AI Act"
    assert "metadata" not in body["responses"][0]
    assert body["masterSummary"]
    assert body["routingInfo"] == {
        "selectedJurisdictions": ["us-federal", "eu"],
        "rationale": "Comparative question about the US and the EU",
        "autoRouted": True
    }
    assert body["suggestedQuestions"] == DEFAULT_SUGGESTIONS

def test_query_with_explicit_jurisdictions(client):
    response = client.post("/api/query", json={"message": "What applies?", "jurisdictions": ["UK"]})

    body = response.json()
    assert body["routingInfo"]["autoRouted"] is False
    assert body["routingInfo"]["selectedJurisdictions"] == ["uk"]
    assert body["masterSummary"] is None

def test_query_needing_clarification(client, generation_provider):
    generation_provider.replies["routing"] = json.dumps({
        "selectedJurisdictions": [CLARIFICATION_NEEDED], "rationale": "No jurisdiction named"
    })

    body = client.post("/api/query", json={"message": "Is my app legal?"}).json()

    assert body["routingInfo"]["selectedJurisdictions"] == [CLARIFICATION_NEEDED]
    assert [r["agentId"] for r in body["responses"]] == ["master"]
    assert body["suggestedQuestions"] is None

def test_query_rejects_blank_message(client):
    assert client.post("/api/query", json={"message": "   "}).status_code == 422

def test_query_unknown_conversation(client):
    response = client.post("/api/query", json={"message": "hi", "conversationId": "missing"})

    assert response.status_code == 404
    assert response.json()["error"] == "Conversation not found"

def test_conversation_history(client):
    first = client.post("/api/query", json={"message": "EU rules", "jurisdictions": ["eu"]}).json()

    conversations = client.get("/api/conversations").json()
    messages = client.get(f"/api/conversations/{first['conversationId']}/messages").json()

    assert [c["id"] for c in conversations] == [first["conversationId"]]
    assert [m["role"] for m in messages] == ["user", "assistant"]
    assert messages[1]["agentId"] == "eu"
    assert client.get("/api/conversations/missing/messages").status_code == 404

def test_agents_report_session_counters(client):
    client.post("/api/documents", json=document_payload())

    agents = {a["id"]: a for a in client.get("/api/agents").json()}

    assert set(agents) == {"us-federal", "california", "colorado", "eu", "uk", "germany"}
    assert agents["eu"]["status"] == "active"
    assert agents["eu"]["documentsCount"] == 1
    assert agents["eu"]["indexedEmbeddings"] == 1
    assert agents["uk"]["status"] == "idle"

def test_create_and_fetch_chunked_document(client):
    content = long_text(60000)

    created = client.post("/api/documents", json=document_payload(content=content))

    assert created.status_code == 200
    document = created.json()
    assert "embedding" not in document
    assert document["isChunk"] is True

    full = client.get(f"/api/documents/full/{document['id']}").json()
    assert full["title"] == "EU AI Act"
    assert full["chunkCount"] >= 3
    assert full["content"] == content

    listed = client.get("/api/documents", params={"jurisdiction": "eu"}).json()
    assert len(listed) == 1
    assert listed[0]["chunkCount"] == full["chunkCount"]

def test_create_document_validation(client):
    payload = document_payload()
    del payload["documentType"]

    assert client.post("/api/documents", json=payload).status_code == 422

def test_create_document_embedding_failure(client, embedding_provider):
    embedding_provider.fail_on = "broken"

    response = client.post("/api/documents", json=document_payload(content="This text is broken."))

    assert response.status_code == 500
    assert response.json()["error"] == "Failed to create document"

def test_bulk_upload_reports_failures(client, embedding_provider):
    embedding_provider.fail_on = "broken"

    response = client.post("/api/documents/bulk", json={"documents": [
        document_payload(title="One"),
        document_payload(title="Two", content="This one is broken."),
        document_payload(title="Three", jurisdiction="uk"),
    ]})

    body = response.json()
    assert body["message"] == "Successfully processed 2 documents"
    assert body["failedCount"] == 1
    assert [d["title"] for d in body["documents"]] == ["One", "Three"]

def test_bulk_upload_requires_documents(client):
    assert client.post("/api/documents/bulk", json={"documents": []}).status_code == 422

def test_jurisdictions_listing(client):
    client.post("/api/documents", json=document_payload())
    client.post("/api/documents", json=document_payload(title="ICO guidance", jurisdiction="uk"))

    assert client.get("/api/jurisdictions").json() == [
        {"id": "eu", "name": "eu", "documentCount": 1},
        {"id": "uk", "name": "uk", "documentCount": 1},
    ]

def test_delete_document(client):
    document = client.post("/api/documents", json=document_payload()).json()

    response = client.delete(f"/api/documents/{document['id']}")

    assert response.json() == {"message": "Document deleted successfully"}
    missing = client.get(f"/api/documents/full/{document['id']}")
    assert missing.status_code == 404
    assert missing.json()["error"] == "Document not found"
    assert client.delete(f"/api/documents/{document['id']}").status_code == 404

def test_delete_jurisdiction(client):
    client.post("/api/documents", json=document_payload(title="One"))
    client.post("/api/documents", json=document_payload(title="Two"))

    response = client.delete("/api/documents/jurisdiction/eu").json()

    assert response == {
        "success": True,
        "message": "Successfully deleted 2 documents for eu",
        "deletedCount": 2
    }
    assert client.get("/api/documents", params={"jurisdiction": "eu"}).json() == []

    empty = client.delete("/api/documents/jurisdiction/eu").json()
    assert empty["deletedCount"] == 0
    assert empty["message"] == "No documents found for this jurisdiction"
