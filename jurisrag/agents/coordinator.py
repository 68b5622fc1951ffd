from __future__ import annotations

import asyncio
import json
import time
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..config import get_settings, Settings
from ..config.jurisdictions import AgentConfig, MASTER_AGENT_CONFIG
from ..models import (
    CLARIFICATION_NEEDED, AgentResponse, DispatchOutcome, MasterResponse,
    QueryRequest, QueryType, RoutingDecision, RoutingReply, SuggestedQuestionsReply
)
from ..services.providers import GenerationProvider, ProviderError
from .base_agent import BaseAgent
from .jurisdiction import JurisdictionAgent


ROUTING_SYSTEM_PROMPT = "You are a routing specialist for AI regulation queries. Respond only with valid JSON."

CLARIFICATION_SYSTEM_PROMPT = (
    "You are a helpful AI regulation assistant that guides users to specify "
    "jurisdictions for more accurate answers."
)

SUGGESTION_SYSTEM_PROMPT = (
    "You are an AI regulation expert who generates insightful follow-up questions. "
    "You MUST respond with valid JSON containing exactly 5 questions. "
    "Your response should be ONLY the JSON array, nothing else."
)

ROUTING_TEMPLATE = """You are a routing agent for an AI regulations query system. Analyze the following query and determine which jurisdictions should handle it.

Available jurisdictions:
{catalog}

Query: "{query}"
Query Type: {query_type}

First, determine if the query is jurisdiction-specific or general:
- If the query clearly mentions specific countries, regions, laws, or is asking for jurisdiction-specific information, route to those jurisdictions
- If the query is very general and could benefit from clarification (e.g., "what are the requirements?", "how do I comply?"), respond with "{sentinel}"
- If the query is comparative or general but doesn't need clarification, route to relevant jurisdictions

Respond with JSON in this format:
{{
  "selectedJurisdictions": ["jurisdiction1", "jurisdiction2"] OR ["{sentinel}"],
  "rationale": "Brief explanation of why these jurisdictions were selected or why clarification is needed"
}}

Examples of queries needing clarification:
- "What are the compliance requirements?"
- "How do I implement AI governance?"
- "What are the penalties for non-compliance?"
- "What documentation is required?"

Examples of queries that don't need clarification:
- "Compare EU and US AI regulations"
- "What does the EU AI Act say about high-risk systems?"
- "How does California regulate AI?\""""

CLARIFICATION_TEMPLATE = """The user asked: "{query}"

This query could apply to multiple jurisdictions and would benefit from clarification. Generate a helpful response that:

1. Acknowledges their question
2. Explains that AI regulations vary by jurisdiction
3. Asks them to specify which jurisdiction(s) they're interested in
4. Lists the available options with brief descriptions

Available jurisdictions:
{catalog}

Keep the response friendly and helpful, encouraging them to specify their jurisdiction of interest."""

SUMMARY_TEMPLATE = """You have received responses from multiple jurisdiction agents about the following query: "{query}"

Here are the responses from different jurisdictions:
{responses}

Please provide a comprehensive summary that:
1. Highlights key differences between jurisdictions
2. Identifies common themes and approaches
3. Provides actionable insights for the user
4. Notes any conflicting or complementary requirements

Keep the summary concise but informative, focusing on the most important comparative insights."""

SUGGESTION_TEMPLATE = """Based on the original query "{query}" and the following AI regulation response content, generate exactly 5 specific, actionable follow-up questions that would help the user explore related regulatory topics in more depth.

Response content:
{content}

Jurisdictions covered: {jurisdictions}

Generate 5 follow-up questions that:
1. Explore specific implementation details or requirements
2. Ask about compliance procedures or timelines
3. Inquire about penalties, enforcement, or consequences
4. Compare different jurisdictional approaches
5. Dive deeper into technical requirements or definitions

Format your response as a JSON array of exactly 5 strings, like:
["Question 1", "Question 2", "Question 3", "Question 4", "Question 5"]

Make questions specific to AI regulations and directly relevant to the response content."""

# Used when the model's reply cannot be parsed into exactly five questions
FALLBACK_QUESTIONS = [
    "What are the specific compliance requirements for this regulation?",
    "What penalties apply for non-compliance?",
    "How do implementation timelines differ across jurisdictions?",
    "What technical standards must AI systems meet?",
    "Are there exemptions for certain types of AI applications?",
]

# Used when the provider itself fails
PROVIDER_FAILURE_QUESTIONS = [
    "What are the key compliance requirements?",
    "What are the enforcement mechanisms?",
    "How do different jurisdictions compare?",
    "What are the implementation deadlines?",
    "Are there industry-specific provisions?",
]

# Keyword-themed questions for queries that produced no agent answers
TOPIC_QUESTIONS = [
    (("compliance", "requirement"), [
        "What are the key documentation requirements?",
        "What testing and validation is required?",
        "Are there certification processes involved?",
        "What ongoing monitoring obligations exist?",
        "How often must compliance be reviewed?",
    ]),
    (("timeline", "deadline", "effective"), [
        "What are the key implementation milestones?",
        "Are there grace periods for existing systems?",
        "What happens if deadlines are missed?",
        "Are there different timelines for different AI types?",
        "How should organizations prepare for these deadlines?",
    ]),
    (("difference", "compare", "versus"), [
        "How do the regulatory approaches fundamentally differ?",
        "Which jurisdiction has the strictest requirements?",
        "Are there conflicts between different regulations?",
        "How do international companies handle multiple jurisdictions?",
        "What are the common themes across all jurisdictions?",
    ]),
]

GENERIC_QUESTIONS = [
    "What are the specific compliance requirements?",
    "What penalties apply for non-compliance?",
    "How do implementation timelines work?",
    "What technical standards are required?",
    "Are there exemptions available?",
]

FALLBACK_RATIONALE = "Auto-routing failed, using default jurisdictions"


class OrchestrationError(Exception):
    pass


def clean_json_reply(text: str) -> str:
    """Strip a markdown code fence around a JSON reply."""
    text = text.strip()
    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]

    if text.endswith("```"):
        text = text[:-3]

    return text.strip()


class MasterAgent(BaseAgent):
    """
    Routes a query to jurisdiction agents, runs them concurrently and
    aggregates whatever succeeded into one structured answer.

    ROUTE -> CLARIFY (terminal) | DISPATCH -> AGGREGATE -> RESPOND
    """

    def __init__(
        self,
        agents: Dict[str, JurisdictionAgent],
        generation_provider: GenerationProvider,
        config: AgentConfig = MASTER_AGENT_CONFIG,
        settings: Optional[Settings] = None
    ) -> None:
        super().__init__(config, generation_provider)
        self.settings = settings or get_settings()
        self.agents = agents

        self.default_jurisdictions = list(self.settings.default_jurisdictions)
        self.auto_route_default = self.settings.auto_route_default
        self.agent_timeout = self.settings.agent_timeout_seconds

        self.stats: Dict[str, Any] = {
            "requests": 0,
            "errors": 0,
            "clarifications": 0,
            "routing_fallbacks": 0,
            "agent_failures": 0,
            "total_dispatch_failures": 0,
            "avg_latency_ms": 0.0,
            "last_latency_ms": 0.0,
        }

    @property
    def catalog(self) -> List[str]:
        return list(self.agents.keys())

    async def process_query(self, query: str, context: Optional[Dict[str, Any]] = None) -> MasterResponse:
        request = QueryRequest(message=query, **(context or {}))
        return await self.process_request(request)

    async def process_request(self, request: QueryRequest) -> MasterResponse:
        start = time.perf_counter()
        self.stats["requests"] += 1
        self.metrics["requests"] += 1
        query = request.message
        self.logger.info(f"Processing query: {query[:100]}")

        try:
            routing = await self.route(request)
            self.logger.info(
                f"Routing decision: {routing.selected_jurisdictions} "
                f"(auto_routed={routing.auto_routed}): {routing.rationale}"
            )

            if routing.needs_clarification:
                self.stats["clarifications"] += 1
                content = await self.clarify(query)
                return MasterResponse(
                    responses=[AgentResponse(
                        agent_id=self.config.id,
                        agent_name=self.config.name,
                        content=content,
                        sources=[]
                    )],
                    master_summary=None,
                    routing_info=routing,
                    suggested_questions=None
                )

            outcome = await self.dispatch(query, routing.selected_jurisdictions, request.query_type)

            master_summary = None
            if len(outcome.responses) > 1:
                master_summary = await self.summarize(query, outcome.responses)

            suggested_questions = await self.suggest_questions(
                query, outcome.responses, routing.selected_jurisdictions
            )

            return MasterResponse(
                responses=outcome.responses,
                master_summary=master_summary,
                routing_info=routing,
                suggested_questions=suggested_questions,
                failed_jurisdictions=list(outcome.failures.keys())
            )

        except Exception as e:
            self.stats["errors"] += 1
            self.metrics["failed_requests"] += 1
            self.logger.error(f"Error processing query: {e}")
            raise

        finally:
            latency_ms = (time.perf_counter() - start) * 1000
            self._update_latency(latency_ms)

    # ROUTE

    async def route(self, request: QueryRequest) -> RoutingDecision:
        if request.jurisdictions:
            return RoutingDecision(
                selected_jurisdictions=list(dict.fromkeys(j.lower() for j in request.jurisdictions)),
                rationale="Jurisdictions explicitly specified by user",
                auto_routed=False
            )

        auto_route = self.auto_route_default if request.auto_route is None else request.auto_route
        if not auto_route:
            return RoutingDecision(
                selected_jurisdictions=self.catalog,
                rationale="Auto-routing disabled, querying all jurisdictions",
                auto_routed=False
            )

        selected, rationale = await self._auto_route(request.message, request.query_type)
        return RoutingDecision(
            selected_jurisdictions=selected,
            rationale=rationale,
            auto_routed=True
        )

    async def _auto_route(self, query: str, query_type: QueryType) -> tuple[List[str], str]:
        prompt = ROUTING_TEMPLATE.format(
            catalog=self._catalog_listing(),
            query=query,
            query_type=QueryType(query_type).value,
            sentinel=CLARIFICATION_NEEDED
        )

        try:
            raw_reply = await self.generate_response(
                prompt, json_mode=True, system_prompt=ROUTING_SYSTEM_PROMPT
            )
        except ProviderError as e:
            self.logger.error(f"Error in auto-routing: {e}")
            return self._routing_fallback()

        reply = self._parse_routing_reply(raw_reply)
        if reply is None:
            return self._routing_fallback()

        if CLARIFICATION_NEEDED in reply.selected_jurisdictions:
            return [CLARIFICATION_NEEDED], reply.rationale or "Query requires jurisdiction clarification"

        valid: List[str] = []
        for jurisdiction in reply.selected_jurisdictions:
            jurisdiction = jurisdiction.lower()
            if jurisdiction in self.agents and jurisdiction not in valid:
                valid.append(jurisdiction)

        if not valid:
            self.logger.warning(
                f"Routing reply named no known jurisdiction: {reply.selected_jurisdictions}"
            )
            return self._routing_fallback()

        return valid, reply.rationale or "Auto-routed based on query analysis"

    def _parse_routing_reply(self, raw_reply: str) -> Optional[RoutingReply]:
        try:
            payload = json.loads(clean_json_reply(raw_reply))
            if not isinstance(payload, dict):
                raise ValueError("routing reply is not a JSON object")
            return RoutingReply.model_validate(payload)
        except (ValueError, ValidationError) as e:
            self.logger.warning(f"Invalid routing response format: {e}")
            return None

    def _routing_fallback(self) -> tuple[List[str], str]:
        self.stats["routing_fallbacks"] += 1
        return list(self.default_jurisdictions), FALLBACK_RATIONALE

    # CLARIFY

    async def clarify(self, query: str) -> str:
        prompt = CLARIFICATION_TEMPLATE.format(query=query, catalog=self._catalog_listing())
        try:
            return await self.generate_response(prompt, system_prompt=CLARIFICATION_SYSTEM_PROMPT)
        except ProviderError as e:
            raise OrchestrationError(f"Failed to generate clarification: {e}") from e

    # DISPATCH

    async def dispatch(
        self,
        query: str,
        jurisdictions: List[str],
        query_type: QueryType = QueryType.GENERAL
    ) -> DispatchOutcome:
        """Run every selected agent concurrently and wait for all of them to settle."""
        context = {"query_type": QueryType(query_type).value}

        results = await asyncio.gather(
            *(self._run_agent(jurisdiction, query, context) for jurisdiction in jurisdictions),
            return_exceptions=True
        )

        outcome = DispatchOutcome()
        for jurisdiction, result in zip(jurisdictions, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                self.stats["agent_failures"] += 1
                reason = str(result) or type(result).__name__
                outcome.failures[jurisdiction] = reason
                self.logger.error(f"Failed to query {jurisdiction}: {reason}")
            else:
                outcome.responses.append(result)

        if outcome.total_failure:
            self.stats["total_dispatch_failures"] += 1
            self.logger.warning(f"Every selected jurisdiction failed: {list(outcome.failures)}")

        return outcome

    async def _run_agent(self, jurisdiction: str, query: str, context: Dict[str, Any]) -> AgentResponse:
        agent = self.agents.get(jurisdiction)
        if agent is None:
            raise OrchestrationError(f"Agent not found for jurisdiction: {jurisdiction}")

        if self.agent_timeout:
            try:
                return await asyncio.wait_for(agent.answer(query, context), timeout=self.agent_timeout)
            except asyncio.TimeoutError:
                raise OrchestrationError(
                    f"Agent {jurisdiction} timed out after {self.agent_timeout}s"
                ) from None
        return await agent.answer(query, context)

    # AGGREGATE

    async def summarize(self, query: str, responses: List[AgentResponse]) -> str:
        response_context = "\n".join(
            f"{r.agent_name} Response:\n{r.content}\n---" for r in responses
        )
        prompt = SUMMARY_TEMPLATE.format(query=query, responses=response_context)

        try:
            summary = await self.generate_response(prompt)
        except ProviderError as e:
            self.logger.error(f"Error generating master summary: {e}")
            summary = ""

        if summary.strip():
            return summary

        names = ", ".join(r.agent_name for r in responses)
        return (
            f"Answers were received from {names}. A comparative summary could not be "
            f"generated; review each jurisdiction's answer for the differences between them."
        )

    # RESPOND

    async def suggest_questions(
        self,
        query: str,
        responses: List[AgentResponse],
        jurisdictions: List[str]
    ) -> List[str]:
        """Always exactly five follow-up questions."""
        if not responses:
            return self._topic_questions(query)

        content = "\n\n".join(r.content for r in responses)
        names = ", ".join(
            self.agents[j].config.name if j in self.agents else j for j in jurisdictions
        )
        prompt = SUGGESTION_TEMPLATE.format(query=query, content=content, jurisdictions=names)

        try:
            raw_reply = await self.generate_response(
                prompt, json_mode=True, system_prompt=SUGGESTION_SYSTEM_PROMPT
            )
        except ProviderError as e:
            self.logger.error(f"Error generating suggested questions: {e}")
            return list(PROVIDER_FAILURE_QUESTIONS)

        try:
            payload = json.loads(clean_json_reply(raw_reply))
            if isinstance(payload, dict):
                payload = payload.get("questions")
            return SuggestedQuestionsReply(questions=payload).questions
        except (ValueError, ValidationError) as e:
            self.logger.warning(f"Invalid suggested questions reply, using fallback: {e}")
            return list(FALLBACK_QUESTIONS)

    @staticmethod
    def _topic_questions(query: str) -> List[str]:
        query_lower = query.lower()
        for keywords, questions in TOPIC_QUESTIONS:
            if any(keyword in query_lower for keyword in keywords):
                return list(questions)
        return list(GENERIC_QUESTIONS)

    def _catalog_listing(self) -> str:
        return "\n".join(
            f"- {agent_id}: {agent.config.description or agent.config.name}"
            for agent_id, agent in self.agents.items()
        )

    def _update_latency(self, latency_ms: float) -> None:
        self.stats["last_latency_ms"] = latency_ms
        n = self.stats["requests"]
        prev_avg = self.stats["avg_latency_ms"]
        self.stats["avg_latency_ms"] = ((prev_avg * (n - 1)) + latency_ms) / max(n, 1)

    def get_stats(self) -> Dict[str, Any]:
        return {
            **self.stats,
            "master": self.get_metrics(),
            "agents": {agent_id: agent.get_metrics() for agent_id, agent in self.agents.items()}
        }
