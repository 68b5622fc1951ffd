import pytest
from datetime import datetime
from pydantic import ValidationError

from jurisrag.models import (
    AgentResponse,
    AgentSession,
    AgentStatus,
    CLARIFICATION_NEEDED,
    Document,
    DocumentInput,
    QueryRequest,
    QueryType,
    RoutingDecision,
    RoutingReply,
    SourceReference,
    SuggestedQuestionsReply,
)

def test_document_defaults():
    doc = Document(
        title = "EU AI Act",
        content = "x" * 400,
        jurisdiction = "eu",
        document_type = "regulation"
    )

    assert doc.id
    assert doc.is_chunk is False
    assert doc.root_id == doc.id
    assert doc.approximate_tokens == 100
    assert isinstance(doc.created_at, datetime)

def test_document_is_immutable():
    doc = Document(title = "t", content = "c", jurisdiction = "eu", document_type = "law")

    with pytest.raises(ValidationError):
        doc.title = "changed"

def test_chunk_root_and_base_title():
    chunk = Document(
        title = "EU AI Act (Part 2/3)",
        content = "c",
        jurisdiction = "eu",
        document_type = "regulation",
        original_document_id = "root-id",
        chunk_index = 1,
        is_chunk = True
    )

    assert chunk.root_id == "root-id"
    assert chunk.base_title == "EU AI Act"

def test_document_serializes_camel_case_without_embedding():
    doc = Document(
        title = "t", content = "c", jurisdiction = "eu", document_type = "law",
        source_url = "https://example.org", embedding = [0.1, 0.2]
    )

    data = doc.model_dump(by_alias = True)

    assert data["documentType"] == "law"
    assert data["sourceUrl"] == "https://example.org"
    assert "embedding" not in data

def test_document_input_normalizes_jurisdiction():
    doc = DocumentInput.model_validate({
        "title": "t", "content": "c", "jurisdiction": "  EU ", "documentType": "law"
    })

    assert doc.jurisdiction == "eu"

def test_document_input_rejects_empty_content():
    with pytest.raises(ValidationError):
        DocumentInput(title = "t", content = "", jurisdiction = "eu", document_type = "law")

    with pytest.raises(ValidationError):
        DocumentInput(title = "t", content = "  \n ", jurisdiction = "eu", document_type = "law")

def test_document_input_strips_outer_whitespace():
    doc = DocumentInput(title = "t", content = "  Article 5.\n", jurisdiction = "eu", document_type = "law")

    assert doc.content == "Article 5."

def test_query_request_from_wire_format():
    request = QueryRequest.model_validate({
        "message": "  Compare EU and US  ",
        "conversationId": "c1",
        "jurisdictions": ["EU", " us-federal "],
        "queryType": "comparison",
        "autoRoute": False
    })

    assert request.message == "Compare EU and US"
    assert request.conversation_id == "c1"
    assert request.jurisdictions == ["eu", "us-federal"]
    assert request.query_type == QueryType.COMPARISON
    assert request.auto_route is False

def test_query_request_deduplicates_jurisdictions():
    request = QueryRequest(message = "q", jurisdictions = ["eu", "EU", " uk ", "eu"])

    assert request.jurisdictions == ["eu", "uk"]

def test_query_request_rejects_blank_message():
    with pytest.raises(ValidationError):
        QueryRequest(message = "   ")

def test_source_relevance_bounds():
    SourceReference(title = "t", relevance = 1.0, tokens = 0)

    with pytest.raises(ValidationError):
        SourceReference(title = "t", relevance = 1.2, tokens = 0)

def test_agent_response_hides_metadata():
    response = AgentResponse(agent_id = "eu", agent_name = "EU", content = "c", metadata = {"a": 1})

    data = response.model_dump(by_alias = True)

    assert data == {"agentId": "eu", "agentName": "EU", "content": "c", "sources": []}

def test_routing_decision_needs_clarification():
    assert RoutingDecision(
        selected_jurisdictions = [CLARIFICATION_NEEDED], rationale = "r", auto_routed = True
    ).needs_clarification
    assert not RoutingDecision(
        selected_jurisdictions = ["eu"], rationale = "r", auto_routed = True
    ).needs_clarification

def test_routing_reply_drops_non_string_ids():
    reply = RoutingReply.model_validate({"selectedJurisdictions": [" eu ", 3, None, ""]})

    assert reply.selected_jurisdictions == ["eu"]
    assert reply.rationale is None

def test_suggested_questions_cardinality():
    SuggestedQuestionsReply(questions = ["a", "b", "c", "d", "e"])

    with pytest.raises(ValidationError):
        SuggestedQuestionsReply(questions = ["a", "b", "c", "d"])

def test_agent_session_counters_non_negative():
    session = AgentSession(agent_id = "eu")

    assert session.status == AgentStatus.IDLE
    assert session.documents_count == 0

    with pytest.raises(ValidationError):
        AgentSession(agent_id = "eu", documents_count = -1)
