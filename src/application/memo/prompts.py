"""
Prompt text for the research-memo completion.
langchain_core.messages is treated as framework (not infrastructure), as in
the rest of the application layer.
"""

import json
from typing import Optional

from langchain_core.messages import HumanMessage, SystemMessage

from src.domain.entities.financial_snapshot import FinancialSnapshot
from src.domain.entities.stock_price import PriceAnalytics, PriceWindowStats

SYSTEM_PROMPT = (
    "You are a senior equity research analyst. You ONLY return valid JSON. "
    "Never use markdown. Always be factual and neutral."
)

MEMO_SCHEMA = {
    "company": {
        "name": "Official company name",
        "symbol": "TICKER",
        "exchange": "Exchange",
        "sector": "Sector name",
        "industry": "Industry name",
    },
    "research": {
        "priceContext": {
            "trend": "Neutral description of 1Y/3Y/5Y price behavior, volatility and drawdowns",
            "volatility": "High/Medium/Low",
        },
        "financialStructure": {
            "description": "Revenue mix, margin trends, cost structure. Historical only.",
            "segments": ["Segment: X%"],
        },
        "businessSnapshot": ["4-6 factual one-line bullets"],
        "whyThisCOULDWork": [
            {"claim": "Management-stated strategy point", "evidenceStrength": "Strong/Moderate/Weak"}
        ],
        "keyRisks": ["Exactly 5 company-disclosed risks"],
        "valuationSanity": {
            "assessment": "Cheap/Premium/Inline/Not disclosed",
            "reasoning": "Brief qualitative explanation",
        },
        "judgmentSupport": {
            "businessQuality": {"level": "High/Medium/Low", "reasoning": "One neutral line"},
            "evidenceStrength": {"level": "High/Medium/Low", "reasoning": "One neutral line"},
            "uncertaintyLevel": {"level": "High/Medium/Low", "reasoning": "One neutral line"},
        },
        "validationNeeds": ["Exactly 3 items"],
        "narrativeContext": ["Exactly 3 recent developments"],
    },
}

RULES = """CRITICAL RULES:
1. 4-6 bullets in businessSnapshot
2. EXACTLY 3 items in whyThisCOULDWork, each tagged Strong/Moderate/Weak
3. EXACTLY 5 items in keyRisks (use "Not disclosed" if fewer available)
4. EXACTLY 3 items in validationNeeds and 3 in narrativeContext
5. NO predictions, NO recommendations, NO price targets
6. Claims must be management-stated or company-disclosed
7. Where reported figures are given below, use them rather than recalled values

Return ONLY the JSON object. NO markdown, NO backticks, NO explanation."""


def _window_line(label: str, stats: Optional[PriceWindowStats]) -> str:
    if stats is None:
        return f"- {label}: not disclosed"
    return (
        f"- {label}: {stats.start_price} -> {stats.end_price} "
        f"({stats.percent_change:+.2f}%), max drawdown {stats.max_drawdown_percent:.2f}%, "
        f"annualized volatility {stats.annualized_volatility_percent:.2f}%"
    )


def summarize_reported_figures(
    snapshot: Optional[FinancialSnapshot], analytics: Optional[PriceAnalytics]
) -> str:
    """Compact text block of fetched figures, or "" when nothing was fetched."""
    if snapshot is None:
        return ""
    lines = [f"Reported data for {snapshot.symbol}:"]
    price = snapshot.quote.get("price")
    if price:
        lines.append(f"- Latest price: {price}")
    if analytics is not None:
        lines.append(_window_line("1Y", analytics.one_year))
        lines.append(_window_line("3Y", analytics.three_year))
        lines.append(_window_line("5Y", analytics.five_year))
    if snapshot.income_statements:
        latest = snapshot.income_statements[0]
        lines.append(
            f"- Latest fiscal year {latest.get('fiscalYear') or latest.get('calendarYear') or latest.get('date', 'n/a')}: "
            f"revenue {latest.get('revenue', 'n/a')}, net income {latest.get('netIncome', 'n/a')}"
        )
    if snapshot.profile.get("sector"):
        lines.append(f"- Sector: {snapshot.profile['sector']}; industry: {snapshot.profile.get('industry', 'n/a')}")
    return "\n".join(lines) if len(lines) > 1 else ""


def build_memo_messages(
    company_name: str,
    exchange: str,
    snapshot: Optional[FinancialSnapshot] = None,
    analytics: Optional[PriceAnalytics] = None,
) -> list:
    """System + user messages asking for the memo as one JSON object."""
    figures = summarize_reported_figures(snapshot, analytics)
    user_prompt = (
        f"Generate a structured analytical research memo for {company_name} ({exchange}).\n\n"
        "Return ONLY valid JSON with this EXACT structure:\n\n"
        f"{json.dumps(MEMO_SCHEMA, indent=2)}\n\n"
        f"{RULES}"
    )
    if figures:
        user_prompt = f"{user_prompt}\n\n{figures}"
    return [SystemMessage(content=SYSTEM_PROMPT), HumanMessage(content=user_prompt)]
