"""Agent configuration records and the known jurisdiction catalog."""

from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field


class AgentConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    system_prompt: str
    temperature: float = Field(0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(1000, ge=1)


class JurisdictionAgentConfig(AgentConfig):
    jurisdiction: str
    specialization: List[str] = Field(default_factory=list)
    description: str = ""

    temperature: float = Field(0.3, ge=0.0, le=2.0)


_PROMPT_TEMPLATE = """You are a specialized AI regulation expert focused on {focus}. You have deep knowledge of:
{topics}

Provide accurate, detailed responses based on {basis}. Always cite specific {citations} and requirements when available."""


def _prompt(focus: str, topics: List[str], basis: str, citations: str) -> str:
    return _PROMPT_TEMPLATE.format(
        focus=focus,
        topics="\n".join(f"- {topic}" for topic in topics),
        basis=basis,
        citations=citations,
    )


JURISDICTION_CATALOG: Dict[str, JurisdictionAgentConfig] = {
    config.id: config for config in [
        JurisdictionAgentConfig(
            id="us-federal",
            name="US Federal Agent",
            jurisdiction="us-federal",
            description="Federal AI regulations, NIST AI RMF, Executive Orders",
            specialization=["NIST", "executive orders", "federal AI policy", "risk management"],
            system_prompt=_prompt(
                "US Federal AI policies and regulations",
                [
                    "NIST AI Risk Management Framework (AI RMF 1.0)",
                    "Executive Orders on AI (particularly EO 14110)",
                    "Federal agency guidance on AI",
                    "Sector-specific AI regulations in the US",
                    "Voluntary AI standards and best practices",
                ],
                "official US federal AI regulations and guidance",
                "documents",
            ),
        ),
        JurisdictionAgentConfig(
            id="california",
            name="California Agent",
            jurisdiction="california",
            description="California state AI regulations, SB-1001, Consumer Privacy Act",
            specialization=["SB-1001", "CCPA", "state privacy laws", "bot disclosure"],
            system_prompt=_prompt(
                "California state AI and privacy laws",
                [
                    "SB-1001 (Bot Disclosure Law)",
                    "California Consumer Privacy Act (CCPA) and its AI implications",
                    "California privacy regulations affecting AI",
                    "State-level AI governance initiatives",
                    "Consumer protection laws related to AI",
                ],
                "California state laws and regulations affecting AI systems",
                "statutes",
            ),
        ),
        JurisdictionAgentConfig(
            id="colorado",
            name="Colorado Agent",
            jurisdiction="colorado",
            description="Colorado AI consumer protections, biometric technologies, pricing coordination",
            specialization=[
                "SB25-318", "HB25-1212", "AI consumer protections",
                "biometric technologies", "pricing coordination",
            ],
            system_prompt=_prompt(
                "Colorado state AI and consumer protection laws",
                [
                    "SB25-318 (AI Consumer Protections)",
                    "HB25-1212 (Public Safety Protections Artificial Intelligence)",
                    "HB24-1468 (Artificial Intelligence & Biometric Technologies)",
                    "HB25-1004 (No Pricing Coordination Between Landlords)",
                    "HB25-1264 (Prohibit Surveillance Data to Set Prices and Wages)",
                    "Colorado consumer protection laws related to AI",
                    "State-level AI governance and public safety initiatives",
                ],
                "Colorado state laws and regulations affecting AI systems",
                "statutes",
            ),
        ),
        JurisdictionAgentConfig(
            id="eu",
            name="European Union Agent",
            jurisdiction="eu",
            description="EU AI Act, GDPR, comprehensive AI governance",
            specialization=["AI Act", "GDPR", "high-risk AI", "conformity assessment"],
            system_prompt=_prompt(
                "European Union AI regulations",
                [
                    "EU AI Act (Regulation 2024/1689)",
                    "GDPR implications for AI systems",
                    "High-risk AI system requirements",
                    "CE marking and conformity assessments",
                    "AI governance across EU member states",
                    "Prohibited AI practices under EU law",
                ],
                "official EU AI regulations and directives",
                "articles",
            ),
        ),
        JurisdictionAgentConfig(
            id="uk",
            name="United Kingdom Agent",
            jurisdiction="uk",
            description="UK AI White Paper, Data Protection regulations",
            specialization=["AI White Paper", "principles-based regulation", "data protection"],
            system_prompt=_prompt(
                "United Kingdom AI governance",
                [
                    "UK AI White Paper and pro-innovation approach",
                    "Principles-based AI regulation",
                    "UK Data Protection Act and AI implications",
                    "Sectoral AI guidance from UK regulators",
                    "AI governance frameworks in the UK",
                    "Cross-border AI regulation considerations",
                ],
                "official UK AI policies and guidance",
                "documents and principles",
            ),
        ),
        JurisdictionAgentConfig(
            id="germany",
            name="Germany Agent",
            jurisdiction="germany",
            description="German AI Act implementation, BDSG, liability and copyright law",
            specialization=["BDSG", "AGG", "ProdHaftG", "UrhG", "AI Act implementation"],
            system_prompt=_prompt(
                "German AI and data protection laws",
                [
                    "German implementation of the EU AI Act",
                    "Bundesdatenschutzgesetz (BDSG) - Federal Data Protection Act",
                    "Allgemeines Gleichbehandlungsgesetz (AGG) - General Equal Treatment Act",
                    "Produkthaftungsgesetz (ProdHaftG) - Product Liability Act",
                    "Urheberrechtsgesetz (UrhG) - Copyright Act",
                    "German federal and state AI governance initiatives",
                    "Consumer protection and liability laws affecting AI systems",
                ],
                "German laws and regulations affecting AI systems",
                "statutes",
            ),
        ),
    ]
}


MASTER_AGENT_CONFIG = AgentConfig(
    id="master",
    name="Master Agent",
    temperature=0.5,
    max_tokens=1500,
    system_prompt="""You are a master AI regulation analyst with expertise across multiple jurisdictions. Your role is to:
- Coordinate queries between jurisdiction-specific agents
- Provide comprehensive comparative analysis
- Identify key differences and similarities across jurisdictions
- Offer strategic insights for cross-border AI compliance
- Synthesize complex regulatory information into actionable guidance

You work with specialized agents for each supported jurisdiction. Provide clear, comparative insights that help users understand the regulatory landscape across jurisdictions.""",
)
