"""
Analytics assistant: intent classification and grounded chat replies.

Questions the dashboard can answer exactly (how many active licensees, the
activation rate, top performers, churn risk, state comparison, graduation
distribution) are recognized by an explicit keyword rule table and answered
from computed metrics. Only GENERAL questions reach the language model, and
the model is given the real metrics with an instruction never to invent
figures.

Failure Semantics:
- Spreadsheet unavailable: the reply says the data is unavailable and carries
  no numbers
- No OpenAI key, or the completion call fails: a fallback reply listing the
  supported analyses, again without numbers

Usage:
    service = AssistantService(source, cache, settings, client=get_openai_client(settings))
    reply = await service.chat("quantos licenciados ativos temos?")
    reply.intent   # ChatIntent.ACTIVE_COUNT
"""

import json
import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from openai import AsyncOpenAI, OpenAIError

from network_insights.core.cache import TTLCache
from network_insights.core.config import Settings
from network_insights.models.enums import (
    ChatIntent,
    InsightPriority,
    InsightType,
    LicenseeStatus,
    RiskLabel,
)
from network_insights.models.schemas import ChatMessage, Insight, LicenseeRecord
from network_insights.services.aggregation import (
    compute_kpis,
    distribution_by_graduation,
    rank_records,
    summarize_by_state,
)
from network_insights.services.classification import analyze_churn
from network_insights.services.normalization import strip_accents
from network_insights.services.record_source import RecordSource
from network_insights.services.sheets import DataSourceUnavailableError

logger = logging.getLogger(__name__)


# =============================================================================
# INTENT RULES
# Each rule is (intent, keyword groups). Every group must match; a group
# matches when any of its keywords does. Single words match whole words
# ("count" does not match "country"); a trailing * makes a word prefix
# ("ativo*" matches "ativos"); phrases match as substrings. Rules are checked
# in order and the first match wins.
# =============================================================================

INTENT_RULES: List[Tuple[ChatIntent, List[List[str]]]] = [
    (ChatIntent.CONVERSION_RATE, [
        ['taxa*', 'rate', 'rates', 'percentual'],
        ['conversao', 'ativacao', 'conversion', 'activation'],
    ]),
    (ChatIntent.ACTIVE_COUNT, [
        ['quantos', 'quantas', 'quantidade', 'how many', 'count', 'numero', 'total'],
        ['ativo*', 'ativa', 'ativas', 'active'],
    ]),
    (ChatIntent.CHURN_RISK, [
        ['churn', 'risco', 'riscos', 'risk', 'cancelamento*'],
    ]),
    (ChatIntent.STATE_COMPARISON, [
        ['estado*', 'state', 'states', 'uf', 'ufs', 'regiao', 'regioes', 'region', 'regions', 'compar*'],
    ]),
    (ChatIntent.GRADUATION_DISTRIBUTION, [
        ['graduacao', 'graduation', 'distribuicao', 'distribution', 'tier', 'tiers', 'nivel', 'niveis'],
    ]),
    (ChatIntent.TOP_PERFORMERS, [
        ['top', 'melhor', 'melhores', 'performers', 'desempenho', 'ranking', 'best'],
    ]),
]

DATA_UNAVAILABLE_REPLY = (
    "The licensee data is unavailable right now, so I can't answer with figures. "
    "Please try again in a few minutes."
)

NO_DATA_REPLY = (
    "No licensee data has been loaded yet, so there is nothing to analyze. "
    "Check the spreadsheet connection and refresh."
)

FALLBACK_REPLY = (
    "I can answer questions about active licensees, the activation rate, "
    "top performers, churn risk, state comparison and graduation distribution. "
    "Try asking, for example, \"how many active licensees are there?\""
)

SYSTEM_PROMPT = (
    "You are an analytics assistant for a licensee network dashboard. "
    "Answer using ONLY the metrics provided below. Never invent numbers; if a "
    "figure is not in the metrics, say it is not available. Be concise.\n\n"
    "Current metrics (JSON):\n{metrics}"
)

ACTIVATION_TARGET = 70.0
TOP_PERFORMERS_IN_REPLY = 5
ASSISTANT_METRICS_CACHE_KEY = 'assistant:metrics'


def _tokenize(text: str) -> Tuple[str, List[str]]:
    normalized = strip_accents(text).lower()
    return normalized, re.findall(r'[a-z0-9]+', normalized)


def _keyword_matches(keyword: str, normalized: str, tokens: Sequence[str]) -> bool:
    if ' ' in keyword:
        return keyword in normalized
    if keyword.endswith('*'):
        return any(token.startswith(keyword[:-1]) for token in tokens)
    return keyword in tokens


def classify_intent(message: str) -> ChatIntent:
    """
    Classify a chat message into a ChatIntent.

    Matching is case- and accent-insensitive; "Quantos licenciados ATIVOS?"
    and "quantos licenciados ativos" give the same intent.
    """
    normalized, tokens = _tokenize(message)

    for intent, groups in INTENT_RULES:
        if all(
            any(_keyword_matches(keyword, normalized, tokens) for keyword in group)
            for group in groups
        ):
            return intent
    return ChatIntent.GENERAL


def get_openai_client(settings: Settings) -> Optional[AsyncOpenAI]:
    """Return an AsyncOpenAI client, or None when no API key is configured."""
    if not settings.openai_api_key:
        return None
    return AsyncOpenAI(api_key=settings.openai_api_key)


# =============================================================================
# DETERMINISTIC ANSWERS
# =============================================================================


def _answer_active_count(records: Sequence[LicenseeRecord]) -> Tuple[str, Dict[str, Any]]:
    kpis = compute_kpis(records)
    content = (
        f"There are {kpis.active_licensees:,} active licensees out of "
        f"{kpis.total_licensees:,} registered ({kpis.activation_rate}% active)."
    )
    return content, {'kpis': kpis.model_dump()}


def _answer_conversion_rate(records: Sequence[LicenseeRecord]) -> Tuple[str, Dict[str, Any]]:
    kpis = compute_kpis(records)
    status = "above" if kpis.activation_rate >= ACTIVATION_TARGET else "below"
    content = (
        f"The activation rate is {kpis.activation_rate}% "
        f"({kpis.active_licensees:,} of {kpis.total_licensees:,} licensees), "
        f"{status} the {ACTIVATION_TARGET:.0f}% target."
    )
    return content, {'activation_rate': kpis.activation_rate, 'target': ACTIVATION_TARGET}


def _answer_top_performers(records: Sequence[LicenseeRecord]) -> Tuple[str, Dict[str, Any]]:
    top = rank_records(
        records,
        'active_clients',
        top_k=TOP_PERFORMERS_IN_REPLY,
        status=LicenseeStatus.ACTIVE,
        min_value=0,
    )
    if not top:
        return "No active licensee has active clients yet.", {'top_performers': []}

    lines = [
        f"{i}. {r.name} ({r.code}): {r.active_clients:,} active clients, {r.telecom_clients:,} telecom"
        for i, r in enumerate(top, start=1)
    ]
    content = "Top performers by active clients:\n" + "\n".join(lines)
    return content, {'top_performers': [r.code for r in top]}


def _answer_churn_risk(records: Sequence[LicenseeRecord]) -> Tuple[str, Dict[str, Any]]:
    analysis = analyze_churn(records, top_n=len(records))
    summary = analysis.summary
    urgent = [r for r in analysis.items if r.label == RiskLabel.URGENT][:3]

    content = (
        f"Of {summary.total_analyzed:,} active licensees, {summary.urgent:,} are at urgent "
        f"churn risk and {summary.monitor:,} should be monitored."
    )
    if urgent:
        names = ", ".join(f"{r.name} ({r.id})" for r in urgent)
        content += f" Highest risk: {names}."
    return content, {'summary': summary.model_dump()}


def _answer_state_comparison(records: Sequence[LicenseeRecord]) -> Tuple[str, Dict[str, Any]]:
    states = summarize_by_state(records, top_n=5)
    lines = [
        f"{s.state_code}: {s.total:,} licensees, {s.activation_rate}% active, "
        f"{s.avg_clients} clients on average"
        for s in states
    ]
    content = "States with the most licensees:\n" + "\n".join(lines)
    return content, {'states': [s.state_code for s in states]}


def _answer_graduation_distribution(records: Sequence[LicenseeRecord]) -> Tuple[str, Dict[str, Any]]:
    distribution = distribution_by_graduation(records)
    lines = [f"{d.graduation.value}: {d.count:,}" for d in distribution]
    content = "Active licensees by graduation:\n" + "\n".join(lines)
    return content, {'distribution': {d.graduation.value: d.count for d in distribution}}


DETERMINISTIC_ANSWERS = {
    ChatIntent.ACTIVE_COUNT: _answer_active_count,
    ChatIntent.CONVERSION_RATE: _answer_conversion_rate,
    ChatIntent.TOP_PERFORMERS: _answer_top_performers,
    ChatIntent.CHURN_RISK: _answer_churn_risk,
    ChatIntent.STATE_COMPARISON: _answer_state_comparison,
    ChatIntent.GRADUATION_DISTRIBUTION: _answer_graduation_distribution,
}


def build_metrics_context(records: Sequence[LicenseeRecord]) -> Dict[str, Any]:
    """Headline metrics handed to the language model as its only facts."""
    kpis = compute_kpis(records)
    churn = analyze_churn(records, top_n=len(records))
    return {
        'kpis': kpis.model_dump(),
        'top_performers': [
            {'code': r.code, 'name': r.name, 'active_clients': r.active_clients}
            for r in rank_records(records, 'active_clients', top_k=5, status=LicenseeStatus.ACTIVE, min_value=0)
        ],
        'churn_summary': churn.summary.model_dump(),
        'states': [s.model_dump() for s in summarize_by_state(records, top_n=5)],
        'graduation_distribution': {
            d.graduation.value: d.count for d in distribution_by_graduation(records)
        },
    }


# =============================================================================
# SERVICE
# =============================================================================


class AssistantService:
    """
    Chat and insight generation over the current licensee snapshot.

    Args:
        source: Record source for the normalized snapshot
        cache: Shared cache; holds the headline metrics for a short TTL
        settings: OpenAI model settings and cache lifetimes
        client: AsyncOpenAI client, or None to disable the language model
    """

    def __init__(
        self,
        source: RecordSource,
        cache: TTLCache,
        settings: Settings,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.source = source
        self.cache = cache
        self.settings = settings
        self.client = client

    def _reply(
        self,
        content: str,
        intent: ChatIntent,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ChatMessage:
        return ChatMessage(
            id=uuid.uuid4().hex,
            role="assistant",
            content=content,
            timestamp=datetime.now(timezone.utc),
            intent=intent,
            metadata=metadata or {},
        )

    def _metrics_context(self, records: Sequence[LicenseeRecord]) -> Dict[str, Any]:
        return self.cache.get_or_set(
            ASSISTANT_METRICS_CACHE_KEY,
            lambda: build_metrics_context(records),
            self.settings.metrics_cache_ttl_seconds,
        )

    async def chat(self, message: str) -> ChatMessage:
        """
        Answer one chat message.

        Returns:
            ChatMessage whose metadata records the source of the answer
            ("metrics", "llm", "fallback", "unavailable" or "empty")
        """
        intent = classify_intent(message)
        logger.info(f"Assistant message classified as {intent.value}")

        try:
            records = await self.source.get_records()
        except DataSourceUnavailableError as e:
            logger.warning(f"Assistant reply without data: {e}")
            return self._reply(DATA_UNAVAILABLE_REPLY, intent, {'source': 'unavailable'})

        if not records:
            return self._reply(NO_DATA_REPLY, intent, {'source': 'empty'})

        answer = DETERMINISTIC_ANSWERS.get(intent)
        if answer is not None:
            content, data = answer(records)
            return self._reply(content, intent, {'source': 'metrics', **data})

        return await self._general_reply(message, records)

    async def _general_reply(
        self,
        message: str,
        records: Sequence[LicenseeRecord],
    ) -> ChatMessage:
        if self.client is None:
            return self._reply(FALLBACK_REPLY, ChatIntent.GENERAL, {'source': 'fallback'})

        metrics = self._metrics_context(records)
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT.format(metrics=json.dumps(metrics, default=str))},
            {"role": "user", "content": message},
        ]

        try:
            response = await self.client.chat.completions.create(
                model=self.settings.openai_model,
                messages=messages,
                max_tokens=self.settings.openai_max_tokens,
                temperature=self.settings.openai_temperature,
            )
            content = response.choices[0].message.content
        except OpenAIError as e:
            logger.error(f"OpenAI completion failed: {e}")
            return self._reply(FALLBACK_REPLY, ChatIntent.GENERAL, {'source': 'fallback'})

        if not content:
            return self._reply(FALLBACK_REPLY, ChatIntent.GENERAL, {'source': 'fallback'})

        return self._reply(
            content,
            ChatIntent.GENERAL,
            {'source': 'llm', 'model': self.settings.openai_model},
        )

    async def insights(self) -> List[Insight]:
        """
        Headline insights for the dashboard side panel.

        - Alert when the activation rate is below the 70% target
        - Recommendation to study the top performers
        - Alert when any active licensee is at urgent churn risk

        Raises:
            DataSourceUnavailableError: If the spreadsheet cannot be read
        """
        records = await self.source.get_records()
        if not records:
            return []

        insights: List[Insight] = []
        kpis = compute_kpis(records)

        if kpis.activation_rate < ACTIVATION_TARGET:
            insights.append(Insight(
                type=InsightType.ALERT,
                title="Activation rate below target",
                description=(
                    f"Activation rate is {kpis.activation_rate}% against a "
                    f"{ACTIVATION_TARGET:.0f}% target."
                ),
                priority=InsightPriority.HIGH,
                data={'activation_rate': kpis.activation_rate, 'target': ACTIVATION_TARGET},
            ))

        top = rank_records(records, 'active_clients', top_k=3, status=LicenseeStatus.ACTIVE, min_value=0)
        if top:
            names = ", ".join(r.name for r in top)
            insights.append(Insight(
                type=InsightType.RECOMMENDATION,
                title="Replicate top performer practices",
                description=f"Study what {names} do differently and share it with the network.",
                priority=InsightPriority.MEDIUM,
                data={'codes': [r.code for r in top]},
            ))

        churn = analyze_churn(records, top_n=len(records))
        if churn.summary.urgent > 0:
            insights.append(Insight(
                type=InsightType.ALERT,
                title="Licensees at urgent churn risk",
                description=(
                    f"{churn.summary.urgent:,} active licensees need urgent retention action."
                ),
                priority=InsightPriority.HIGH,
                data={'urgent': churn.summary.urgent},
            ))

        return insights
