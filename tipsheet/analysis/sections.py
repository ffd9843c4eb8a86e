"""Parse LLM analysis responses into structured fields.

The prompts ask for a fenced ```json block with tagged fields. Models do
not always comply, so when no usable JSON is present the response is read
as header-sectioned free text instead:

    Betting Patterns:

    Backs leaders on fast dirt.

    Preferred Tracks:

    - Churchill Downs
    - Saratoga

Blocks are separated by blank lines. A block containing a known header
label switches the current section; any text after the label in the same
block belongs to that section. A block that looks like some other header
("Notes:") switches to no section so its content is ignored. A field with
no matching header keeps its empty default.
"""

import json
import logging
import re
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

# Fenced JSON block: ```json ... ```
_JSON_FENCED_RE = re.compile(r"```json\s*\n(.*?)\n```", re.DOTALL)
# Unclosed fence, the model sometimes forgets to close it
_JSON_UNCLOSED_RE = re.compile(r"```json\s*\n(.*)$", re.DOTALL)

_BLOCK_SPLIT_RE = re.compile(r"\n\s*\n")
_BULLET_RE = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s+")
_OTHER_HEADER_RE = re.compile(r"^[#*\s]*[A-Z][\w /&'()-]{0,48}:[*\s]*$")

ACTOR_HEADERS = {
    "Betting Patterns:": "patterns",
    "Preferred Tracks:": "preferred_venues",
    "Preferred Bet Types:": "preferred_categories",
    "Risk Profile:": "risk_tier",
    "Success Factors:": "success_factors",
    "Recommended Strategies:": "recommended_strategies",
}

AGGREGATE_HEADERS = {
    "Betting Patterns:": "betting",
    "Timing Patterns:": "timing",
    "Selection Patterns:": "selection",
    "Management Patterns:": "management",
}


class PatternAnalysis(BaseModel):
    """Structured result of analysing one actor's history."""

    patterns: list[str] = Field(default_factory=list)
    preferred_venues: list[str] = Field(default_factory=list)
    preferred_categories: list[str] = Field(default_factory=list)
    risk_tier: str = ""
    success_factors: list[str] = Field(default_factory=list)
    recommended_strategies: list[str] = Field(default_factory=list)

    @field_validator(
        "patterns", "preferred_venues", "preferred_categories",
        "success_factors", "recommended_strategies",
        mode="before",
    )
    @classmethod
    def _coerce_list(cls, v: Any) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            return [v] if v.strip() else []
        return [str(item).strip() for item in v if str(item).strip()]

    @field_validator("risk_tier", mode="before")
    @classmethod
    def _coerce_tier(cls, v: Any) -> str:
        return "" if v is None else str(v).strip()


class CommonPatterns(BaseModel):
    """Patterns shared across many profiles, grouped by theme."""

    betting: list[str] = Field(default_factory=list)
    timing: list[str] = Field(default_factory=list)
    selection: list[str] = Field(default_factory=list)
    management: list[str] = Field(default_factory=list)

    @field_validator("betting", "timing", "selection", "management", mode="before")
    @classmethod
    def _coerce_list(cls, v: Any) -> list[str]:
        return PatternAnalysis._coerce_list(v)

    def evidence_pool(self) -> list[str]:
        """Patterns usable as strategy evidence (management rules are not)."""
        return [*self.betting, *self.timing, *self.selection]


def extract_json_block(response: str) -> Optional[dict]:
    """Return the JSON object embedded in a response, or None."""
    candidates = []
    m = _JSON_FENCED_RE.search(response)
    if m:
        candidates.append(m.group(1))
    else:
        m = _JSON_UNCLOSED_RE.search(response)
        if m:
            candidates.append(m.group(1))
    stripped = response.strip()
    if stripped.startswith("{"):
        candidates.append(stripped)

    for raw in candidates:
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            continue
        if isinstance(data, dict):
            return data
    return None


def _block_items(block: str) -> list[str]:
    """Split a content block into items.

    A block made entirely of bullet/numbered lines yields one item per line;
    anything else is a single paragraph item.
    """
    lines = [ln for ln in block.splitlines() if ln.strip()]
    if not lines:
        return []
    if all(_BULLET_RE.match(ln) for ln in lines):
        return [_BULLET_RE.sub("", ln).strip() for ln in lines]
    return [block.strip()]


def parse_sections(response: str, headers: dict[str, str]) -> dict[str, list[str]]:
    """Group a header-sectioned response into ``{field: [items]}``."""
    result: dict[str, list[str]] = {name: [] for name in headers.values()}
    current: Optional[str] = None

    for block in _BLOCK_SPLIT_RE.split(response or ""):
        if not block.strip():
            continue

        matched = next((h for h in headers if h in block), None)
        if matched:
            current = headers[matched]
            remainder = block.split(matched, 1)[1].lstrip("*# \t").strip()
            if remainder:
                result[current].extend(_block_items(remainder))
            continue

        first_line = block.strip().splitlines()[0]
        if _OTHER_HEADER_RE.match(first_line):
            current = None
            continue

        if current:
            result[current].extend(_block_items(block))

    return result


def parse_actor_analysis(response: str) -> PatternAnalysis:
    """Parse an actor analysis: structured JSON first, header sections second."""
    data = extract_json_block(response or "")
    if data is not None:
        try:
            return PatternAnalysis.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Analysis JSON failed validation, falling back to sections: {e}")

    sections = parse_sections(response, ACTOR_HEADERS)
    risk_items = sections.pop("risk_tier")
    return PatternAnalysis(risk_tier=risk_items[0] if risk_items else "", **sections)


def parse_common_patterns(response: str) -> CommonPatterns:
    """Parse a cross-profile analysis into grouped common patterns."""
    data = extract_json_block(response or "")
    if data is not None:
        try:
            return CommonPatterns.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Aggregate JSON failed validation, falling back to sections: {e}")

    return CommonPatterns(**parse_sections(response, AGGREGATE_HEADERS))
