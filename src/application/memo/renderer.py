"""
HTML report and plain-text export of a MemoBundle, rendered with Jinja2.

Every section has a fixed shape: list sections are padded with "Not disclosed"
so a sparse narrative still produces a complete memo.
"""

from typing import Any

from jinja2 import DictLoader, Environment, StrictUndefined

from src.application.memo.formatting import (
    NOT_DISCLOSED,
    format_large_number,
    format_percent,
    format_ratio,
    pad,
)
from src.domain.entities.memo import MemoBundle

SUBTITLE = "StockMemo - Professional Analytics Report"
DISCLAIMER = (
    "This report is an analytical research aid generated using publicly available "
    "information. It does not constitute investment advice. Financial figures come "
    "from Financial Modeling Prep and may contain delays or inaccuracies."
)

_PLACEHOLDER_THESIS = {"claim": NOT_DISCLOSED, "evidenceStrength": "Weak"}
_PLACEHOLDER_JUDGMENT = {"level": "Medium", "reasoning": NOT_DISCLOSED}


def _fraction_percent(value: Any) -> str:
    """Provider ratios are fractions (0.25); display them as 25.0%."""
    try:
        return format_percent(float(value) * 100, decimals=1)
    except (TypeError, ValueError):
        return NOT_DISCLOSED


# (metric key, label, formatter)
_HEADLINE_ROWS = (
    ("price", "Price", format_large_number),
    ("market_cap", "Market Cap", format_large_number),
    ("pe_ratio", "P/E Ratio", format_ratio),
    ("eps", "EPS", format_large_number),
    ("pb_ratio", "P/B Ratio", format_ratio),
    ("ps_ratio", "P/S Ratio", format_ratio),
    ("ev_to_ebitda", "EV/EBITDA", format_ratio),
    ("year_high", "52W High", format_large_number),
    ("year_low", "52W Low", format_large_number),
    ("roe", "Return on Equity", _fraction_percent),
    ("roa", "Return on Assets", _fraction_percent),
    ("gross_margin", "Gross Margin", _fraction_percent),
    ("operating_margin", "Operating Margin", _fraction_percent),
    ("net_margin", "Net Margin", _fraction_percent),
    ("current_ratio", "Current Ratio", format_ratio),
    ("debt_to_equity", "Debt/Equity", format_ratio),
    ("interest_coverage", "Interest Coverage", format_ratio),
    ("quick_ratio", "Quick Ratio", format_ratio),
    ("dividend_yield", "Dividend Yield", _fraction_percent),
    ("fcf_yield", "FCF Yield", _fraction_percent),
)

_HTML_TEMPLATE = """\
<div class="memo">
<div class="memo-title">{{ title }}<div class="memo-subtitle">{{ subtitle }}</div></div>
{% if windows %}
<div class="memo-section">
<h2 class="memo-section-heading">PRICE CONTEXT</h2>
<table class="price-windows">
<tr><th>Window</th><th>Start</th><th>End</th><th>Change</th><th>Max Drawdown</th><th>Volatility</th></tr>
{% for w in windows %}
{% if w.stats %}
<tr><td>{{ w.label }}</td><td>{{ w.stats.start_price }}</td><td>{{ w.stats.end_price }}</td><td>{{ w.stats.percent_change | percent }}</td><td>{{ w.stats.max_drawdown_percent | percent }}</td><td>{{ w.stats.annualized_volatility_percent | percent }}</td></tr>
{% else %}
<tr><td>{{ w.label }}</td><td colspan="5">{{ not_disclosed }}</td></tr>
{% endif %}
{% endfor %}
</table>
</div>
{% endif %}
{% if metrics %}
<div class="memo-section">
<h2 class="memo-section-heading">KEY METRICS</h2>
<dl class="key-metrics">
{% for label, value in metrics %}<dt>{{ label }}</dt><dd>{{ value }}</dd>
{% endfor %}
</dl>
</div>
{% endif %}
<div class="memo-section">
<h2 class="memo-section-heading">BUSINESS SNAPSHOT</h2>
<ul>{% for item in snapshot %}<li>{{ item }}</li>{% endfor %}</ul>
</div>
<div class="memo-section">
<h2 class="memo-section-heading">WHY THIS COULD WORK (MANAGEMENT-SUPPORTED)</h2>
<ul>{% for point in thesis %}<li>{{ point.claim }} <span class="evidence-tag evidence-{{ point.evidenceStrength | lower }}">{{ point.evidenceStrength }}</span></li>{% endfor %}</ul>
</div>
<div class="memo-section">
<h2 class="memo-section-heading">KEY RISKS (COMPANY-DISCLOSED)</h2>
<ul>{% for risk in risks %}<li>{{ risk }}</li>{% endfor %}</ul>
</div>
<div class="memo-section">
<h2 class="memo-section-heading">VALUATION SANITY</h2>
<p><strong>{{ valuation.assessment }}</strong>: {{ valuation.reasoning }}</p>
</div>
<div class="memo-section">
<h2 class="memo-section-heading">JUDGMENT SUPPORT (NON-ADVISORY)</h2>
<div class="judgment-grid">
{% for label, item in judgment %}<div class="judgment-item"><div class="judgment-label">{{ label }}</div><div class="judgment-value">{{ item.level }}</div><div class="judgment-description">{{ item.reasoning }}</div></div>
{% endfor %}
</div>
</div>
<div class="memo-section">
<h2 class="memo-section-heading">WHAT NEEDS VALIDATION NEXT</h2>
<ul>{% for item in validation %}<li>{{ item }}</li>{% endfor %}</ul>
</div>
<div class="memo-section">
<h2 class="memo-section-heading">NEWS &amp; RECENT EVENTS</h2>
{% if narrative %}<ul>{% for item in narrative %}<li>{{ item }}</li>{% endfor %}</ul>{% else %}<p>{{ not_disclosed }}</p>{% endif %}
</div>
<div class="disclaimer"><strong>DISCLAIMER:</strong> {{ disclaimer }}</div>
</div>
"""

_TEXT_TEMPLATE = """\
{{ title }}
{{ subtitle }}
{{ "=" * 60 }}
{% if windows %}

PRICE CONTEXT
{% for w in windows %}{% if w.stats %}- {{ w.label }}: {{ w.stats.start_price }} -> {{ w.stats.end_price }} ({{ w.stats.percent_change | percent }}), max drawdown {{ w.stats.max_drawdown_percent | percent }}, volatility {{ w.stats.annualized_volatility_percent | percent }}
{% else %}- {{ w.label }}: {{ not_disclosed }}
{% endif %}{% endfor %}{% endif %}
{% if metrics %}

KEY METRICS
{% for label, value in metrics %}- {{ label }}: {{ value }}
{% endfor %}{% endif %}

BUSINESS SNAPSHOT
{% for item in snapshot %}- {{ item }}
{% endfor %}
WHY THIS COULD WORK (MANAGEMENT-SUPPORTED)
{% for point in thesis %}- {{ point.claim }} [{{ point.evidenceStrength }}]
{% endfor %}
KEY RISKS (COMPANY-DISCLOSED)
{% for risk in risks %}- {{ risk }}
{% endfor %}
VALUATION SANITY
{{ valuation.assessment }}: {{ valuation.reasoning }}

JUDGMENT SUPPORT (NON-ADVISORY)
{% for label, item in judgment %}- {{ label }}: {{ item.level }} ({{ item.reasoning }})
{% endfor %}
WHAT NEEDS VALIDATION NEXT
{% for item in validation %}- {{ item }}
{% endfor %}
NEWS & RECENT EVENTS
{% if narrative %}{% for item in narrative %}- {{ item }}
{% endfor %}{% else %}{{ not_disclosed }}
{% endif %}
DISCLAIMER: {{ disclaimer }}
"""


def _build_environment(autoescape: bool) -> Environment:
    env = Environment(
        loader=DictLoader({"memo.html": _HTML_TEMPLATE, "memo.txt": _TEXT_TEMPLATE}),
        autoescape=autoescape,
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["percent"] = format_percent
    return env


_HTML_ENV = _build_environment(autoescape=True)
_TEXT_ENV = _build_environment(autoescape=False)


def _thesis_points(points: Any) -> list[dict]:
    normalized = []
    for point in points if isinstance(points, list) else []:
        if isinstance(point, dict):
            normalized.append(
                {
                    "claim": point.get("claim") or NOT_DISCLOSED,
                    "evidenceStrength": point.get("evidenceStrength") or "Weak",
                }
            )
        elif point:
            normalized.append({"claim": str(point), "evidenceStrength": "Weak"})
    return pad(normalized, 3, _PLACEHOLDER_THESIS)


def _judgment(judgment: Any) -> list[tuple[str, dict]]:
    judgment = judgment if isinstance(judgment, dict) else {}
    rows = []
    for key, label in (
        ("businessQuality", "Business Quality"),
        ("evidenceStrength", "Evidence Strength"),
        ("uncertaintyLevel", "Uncertainty Level"),
    ):
        item = judgment.get(key)
        if not isinstance(item, dict):
            item = _PLACEHOLDER_JUDGMENT
        rows.append(
            (
                label,
                {
                    "level": item.get("level") or _PLACEHOLDER_JUDGMENT["level"],
                    "reasoning": item.get("reasoning") or NOT_DISCLOSED,
                },
            )
        )
    return rows


def build_context(bundle: MemoBundle) -> dict:
    """Template context with every section filled or padded."""
    company = bundle.company or {}
    research = bundle.research or {}
    profile = bundle.snapshot.profile if bundle.snapshot is not None else {}

    name = company.get("name") or profile.get("companyName") or bundle.symbol
    exchange = company.get("exchange") or profile.get("exchange") or NOT_DISCLOSED
    sector = company.get("sector") or profile.get("sector") or NOT_DISCLOSED

    snapshot_items = research.get("businessSnapshot")
    if isinstance(snapshot_items, list) and snapshot_items:
        snapshot_items = snapshot_items[:6]
    else:
        snapshot_items = pad([], 4)

    narrative = research.get("narrativeContext")
    valuation = research.get("valuationSanity")
    valuation = valuation if isinstance(valuation, dict) else {}

    windows = []
    if bundle.analytics is not None:
        windows = [
            {"label": "1Y", "stats": bundle.analytics.one_year},
            {"label": "3Y", "stats": bundle.analytics.three_year},
            {"label": "5Y", "stats": bundle.analytics.five_year},
        ]

    metrics = []
    if bundle.headline_metrics:
        metrics = [
            (label, formatter(bundle.headline_metrics.get(key)))
            for key, label, formatter in _HEADLINE_ROWS
        ]

    return {
        "title": f"{name} | {exchange} | {sector}",
        "subtitle": SUBTITLE,
        "windows": windows,
        "metrics": metrics,
        "snapshot": snapshot_items,
        "thesis": _thesis_points(research.get("whyThisCOULDWork")),
        "risks": pad(research.get("keyRisks"), 5),
        "valuation": {
            "assessment": valuation.get("assessment") or NOT_DISCLOSED,
            "reasoning": valuation.get("reasoning") or NOT_DISCLOSED,
        },
        "judgment": _judgment(research.get("judgmentSupport")),
        "validation": pad(research.get("validationNeeds"), 3),
        "narrative": narrative if isinstance(narrative, list) else [],
        "not_disclosed": NOT_DISCLOSED,
        "disclaimer": DISCLAIMER,
    }


def render_html(bundle: MemoBundle) -> str:
    return _HTML_ENV.get_template("memo.html").render(**build_context(bundle))


def render_plain_text(bundle: MemoBundle) -> str:
    return _TEXT_ENV.get_template("memo.txt").render(**build_context(bundle))
