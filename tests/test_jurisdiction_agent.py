import pytest

from jurisrag.agents import JurisdictionAgent
from jurisrag.config import JURISDICTION_CATALOG, RetrievalMode
from jurisrag.services.providers import GenerationError

from conftest import make_document


@pytest.fixture
def eu_agent(generation_provider, storage):
    return JurisdictionAgent(JURISDICTION_CATALOG["eu"], generation_provider, storage)


def test_relevance_scoring_signals(eu_agent):
    doc = make_document("High-risk obligations", "Plain text about nothing in particular.")

    # full query in title +0.3, "high-risk" in title +0.2, "obligations" in title +0.2
    assert eu_agent.calculate_relevance(doc, "high-risk obligations") == pytest.approx(0.7)

def test_relevance_ignores_short_words(eu_agent):
    doc = make_document("Unrelated", "the act and its scope")

    assert eu_agent.calculate_relevance(doc, "the act") == 0.0

def test_relevance_counts_duplicate_query_words(eu_agent):
    doc = make_document("Unrelated", "transparency duties")

    assert eu_agent.calculate_relevance(doc, "transparency") == pytest.approx(0.1)
    assert eu_agent.calculate_relevance(doc, "transparency transparency") == pytest.approx(0.2)

def test_relevance_specialization_bonus(eu_agent):
    plain = make_document("Unrelated", "nothing here")
    special = make_document("Unrelated", "The GDPR and the AI Act both apply to high-risk AI.")

    assert eu_agent.calculate_relevance(plain, "xyz") == 0.0
    # GDPR, AI Act and high-risk AI keywords
    assert eu_agent.calculate_relevance(special, "xyz") == pytest.approx(0.45)

def test_relevance_is_monotonic_and_clamped(eu_agent):
    query = "conformity assessment procedure"
    docs = [
        make_document("Unrelated", "nothing"),
        make_document("Unrelated", "a conformity check"),
        make_document("Conformity", "a conformity assessment"),
        make_document("Conformity assessment procedure", "a conformity assessment procedure"),
        make_document(
            "Conformity assessment procedure",
            "conformity assessment procedure under the AI Act, GDPR and high-risk AI rules"
        ),
    ]

    scores = [eu_agent.calculate_relevance(doc, query) for doc in docs]

    assert scores == sorted(scores)
    assert all(0.0 <= s <= 1.0 for s in scores)
    assert scores[-1] == 1.0

@pytest.mark.asyncio
async def test_retrieve_returns_top_documents_of_own_jurisdiction(eu_agent, storage):
    await storage.create_document(make_document("AI Act overview", "The AI Act regulates AI."))
    await storage.create_document(make_document("Cookie rules", "Consent banners."))
    await storage.create_document(make_document("AI Act", "Federal AI Act text.", jurisdiction="us-federal"))

    results = await eu_agent.retrieve("AI Act", limit=5)

    assert [r.document.title for r in results] == ["AI Act overview", "Cookie rules"]
    assert results[0].score > results[1].score

@pytest.mark.asyncio
async def test_retrieve_limits_results(eu_agent, storage):
    for i in range(8):
        await storage.create_document(make_document(f"Doc {i}", "text"))

    assert len(await eu_agent.retrieve("anything")) == 5
    assert len(await eu_agent.retrieve("anything", limit=2)) == 2

@pytest.mark.asyncio
async def test_answer_reports_sources(eu_agent, storage, generation_provider):
    content = "High-risk AI systems need a conformity assessment. " * 10
    await storage.create_document(make_document("Conformity", content))

    response = await eu_agent.answer("conformity assessment", {"query_type": "compliance"})

    assert response.agent_id == "eu"
    assert response.agent_name == "European Union Agent"
    assert response.content == "Answer for eu"
    assert len(response.sources) == 1
    assert response.sources[0].title == "Conformity"
    assert response.sources[0].tokens == len(content) // 4
    assert 0.0 <= response.sources[0].relevance <= 1.0
    assert response.metadata["query_type"] == "compliance"

    call = generation_provider.calls_of("agent")[0]
    assert call["system_prompt"] == JURISDICTION_CATALOG["eu"].system_prompt
    assert "Document: Conformity" in call["prompt"]
    assert "sufficient information" in call["prompt"]
    assert call["options"].temperature == 0.3
    assert call["options"].max_tokens == 1000

@pytest.mark.asyncio
async def test_answer_propagates_generation_errors(eu_agent, generation_provider):
    generation_provider.failing_jurisdictions["eu"] = GenerationError("quota exceeded")

    with pytest.raises(GenerationError):
        await eu_agent.answer("anything")

    assert eu_agent.metrics["failed_requests"] == 1

@pytest.mark.asyncio
async def test_semantic_retrieval_uses_vector_index(
    generation_provider, storage, vector_index, embedding_provider
):
    agent = JurisdictionAgent(
        JURISDICTION_CATALOG["eu"], generation_provider, storage,
        vector_index=vector_index, embedding_provider=embedding_provider,
        retrieval_mode=RetrievalMode.SEMANTIC
    )
    match = make_document("Match", "biometric identification", embedding=await embedding_provider.embed("biometric identification"))
    other = make_document("Other", "tax law", embedding=await embedding_provider.embed("tax law"))
    foreign = make_document(
        "Foreign", "biometric identification", jurisdiction="uk",
        embedding=await embedding_provider.embed("biometric identification")
    )
    vector_index.add_many([match, other, foreign])

    results = await agent.retrieve("biometric identification")

    assert results[0].document.id == match.id
    assert results[0].score == pytest.approx(1.0)
    assert all(r.document.jurisdiction == "eu" for r in results)
    assert all(0.0 <= r.score <= 1.0 for r in results)

@pytest.mark.asyncio
async def test_hybrid_retrieval_averages_lexical_and_semantic(
    generation_provider, storage, vector_index, embedding_provider
):
    agent = JurisdictionAgent(
        JURISDICTION_CATALOG["eu"], generation_provider, storage,
        vector_index=vector_index, embedding_provider=embedding_provider,
        retrieval_mode=RetrievalMode.HYBRID
    )
    doc = make_document("Unrelated", "watermarking", embedding=await embedding_provider.embed("watermarking"))
    await storage.create_document(doc)
    vector_index.add(doc)

    results = await agent.retrieve("watermarking")

    # lexical 0.1 (content match), semantic 1.0
    assert results[0].score == pytest.approx(0.55)

def test_vector_modes_require_index_and_embeddings(generation_provider, storage):
    with pytest.raises(ValueError):
        JurisdictionAgent(
            JURISDICTION_CATALOG["eu"], generation_provider, storage,
            retrieval_mode=RetrievalMode.SEMANTIC
        )
