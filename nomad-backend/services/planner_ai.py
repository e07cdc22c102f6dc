"""
Prompt templates for the planner's AI features.

Each function embeds its input as JSON, describes the response shape the
frontend renders, and returns whatever JSON Gemini sends back. The shapes are a
contract with the client; nothing here validates them.
"""
import json
import logging
from typing import Any, List, Optional, Sequence

from pydantic import BaseModel

from services.gemini_service import GeminiService, JSONResult

logger = logging.getLogger(__name__)

PLANNER_SYSTEM_PROMPT = """You are the assistant inside Digital Nomad Planner, a productivity app for
remote workers who travel. Be practical and specific to the locations involved.
Always answer with a single JSON value matching the requested format and nothing else."""

CALENDAR_CONFLICT_PROMPT = """Analyse these calendar events of a digital nomad for scheduling conflicts:
overlapping times, travel that collides with work, meetings at unreasonable local hours.

Events:
```
{payload}
```

Respond with JSON in this format:
{{
  "hasConflict": boolean,
  "conflictDetails": "string describing the conflicts, omitted when there are none",
  "suggestedSolutions": [
    {{"description": "string", "pros": ["string"], "cons": ["string"]}}
  ]
}}"""

COWORKING_PROMPT = """Recommend coworking spaces for a digital nomad with these preferences:
```
{payload}
```

Respond with JSON in this format:
{{
  "recommendations": [
    {{
      "name": "string",
      "location": "string",
      "rating": "string",
      "price": "string",
      "internetSpeed": "string",
      "amenities": ["string"],
      "matchingCriteria": ["string"],
      "potentialDrawbacks": ["string"],
      "rank": number
    }}
  ],
  "recommendationSummary": "string"
}}"""

TIMEZONE_PROMPT = """Find the best meeting times for a distributed team.
Team information:
```
{payload}
```

Respond with JSON in this format:
{{
  "optimalMeetingTimes": [
    {{
      "startTime": "string",
      "endTime": "string",
      "impactAssessment": [
        {{"location": "string", "localTime": "string", "impact": "Optimal" | "Acceptable" | "Challenging"}}
      ],
      "reasoning": "string"
    }}
  ],
  "jetlagManagementTips": ["string"]
}}"""

BUDGET_PROMPT = """Analyse the spending of a digital nomad.
Current location: {current_location}
Next destination: {next_destination}

Expenses:
```
{payload}
```

Respond with JSON in this format:
{{
  "categorizedExpenses": [
    {{"category": "string", "amount": number, "percentage": number, "workRelated": boolean}}
  ],
  "comparisonToAverage": {{
    "status": "Above average" | "Below average" | "Average",
    "details": "string"
  }},
  "recommendations": [
    {{"description": "string", "potentialSavings": number, "implementationDifficulty": "Easy" | "Medium" | "Hard"}}
  ]
}}"""

COMMUNITY_PROMPT = """Suggest communities, meetups and networking opportunities for this digital nomad:
```
{payload}
```

Respond with JSON in this format:
{{
  "recommendations": [
    {{
      "name": "string",
      "type": "string",
      "relevanceScore": number,
      "description": "string",
      "contactMethod": "string",
      "matchingInterests": ["string"],
      "networkingApproach": "string"
    }}
  ]
}}"""

LEGAL_PROMPT = """Answer this legal question for a digital nomad (visas, taxes, permission to work remotely):
```
{payload}
```

Respond with JSON in this format:
{{
  "visaRequirements": {{
    "requiredVisa": "string",
    "stayDuration": "string",
    "applicationProcess": "string",
    "requiredDocuments": ["string"],
    "processingTime": "string",
    "fees": "string"
  }},
  "taxImplications": {{
    "taxStatus": "string",
    "reportingRequirements": "string",
    "treatiesSummary": "string",
    "keyConsiderations": ["string"]
  }},
  "workLegality": {{
    "legalStatus": "string",
    "restrictions": ["string"],
    "permissions": ["string"]
  }},
  "authoritativeSources": [
    {{"name": "string", "url": "string", "description": "string"}}
  ],
  "disclaimer": "string"
}}
Omit sections that do not apply; always include authoritativeSources and disclaimer."""

ASSISTANT_PROMPT = """The user asks: "{query}"

The app has these modules: calendar, coworking, timezone, budget, community, legal.
Respond with JSON in this format:
{{
  "response": "string",
  "relatedModules": ["string"],
  "suggestedActions": ["string"]
}}"""


def _serialize(payload: Any) -> str:
    """Dump request data (pydantic records included) as readable JSON."""
    def _plain(value: Any) -> Any:
        if isinstance(value, BaseModel):
            return value.model_dump(mode="json", by_alias=True)
        if isinstance(value, (list, tuple)):
            return [_plain(item) for item in value]
        return value

    return json.dumps(_plain(payload), indent=2, ensure_ascii=False, default=str)


async def _ask(service: GeminiService, feature: str, prompt: str) -> JSONResult:
    logger.info(f"Calling Gemini for {feature}")
    logger.debug(f"Prompt for {feature}: {prompt[:500]}...")
    return await service.generate_json(prompt, system_instruction=PLANNER_SYSTEM_PROMPT)


async def analyze_calendar_conflicts(service: GeminiService, events: Sequence[Any]) -> JSONResult:
    prompt = CALENDAR_CONFLICT_PROMPT.format(payload=_serialize(list(events)))
    return await _ask(service, "calendar conflict analysis", prompt)


async def get_coworking_recommendations(service: GeminiService, preferences: Any) -> JSONResult:
    prompt = COWORKING_PROMPT.format(payload=_serialize(preferences))
    return await _ask(service, "coworking recommendations", prompt)


async def get_timezone_recommendations(service: GeminiService, team_info: Any) -> JSONResult:
    prompt = TIMEZONE_PROMPT.format(payload=_serialize(team_info))
    return await _ask(service, "timezone recommendations", prompt)


async def analyze_budget(
    service: GeminiService,
    entries: List[Any],
    current_location: Optional[str] = None,
    next_destination: Optional[str] = None,
) -> JSONResult:
    prompt = BUDGET_PROMPT.format(
        payload=_serialize(entries),
        current_location=current_location or "unknown",
        next_destination=next_destination or "not planned yet",
    )
    return await _ask(service, "budget analysis", prompt)


async def get_community_recommendations(service: GeminiService, profile: Any) -> JSONResult:
    prompt = COMMUNITY_PROMPT.format(payload=_serialize(profile))
    return await _ask(service, "community recommendations", prompt)


async def get_legal_resources(service: GeminiService, query: Any) -> JSONResult:
    prompt = LEGAL_PROMPT.format(payload=_serialize(query))
    return await _ask(service, "legal resources", prompt)


async def get_assistant_response(service: GeminiService, query: str) -> JSONResult:
    # json.dumps escapes quotes so the question cannot break out of the template
    prompt = ASSISTANT_PROMPT.format(query=json.dumps(query, ensure_ascii=False)[1:-1])
    return await _ask(service, "assistant", prompt)
