"""Structured field extraction from clinical trial protocol text."""

import json
import logging
import re
from typing import Any

from trialquote.llm import create_llm_client
from trialquote.models.intake import ExtractionResult
from trialquote.utils.validation import load_schema, validate_extraction_payload

logger = logging.getLogger(__name__)

# Confidence given to every field found by the regex fallback
HEURISTIC_CONFIDENCE = 60

EXTRACTION_SYSTEM_PROMPT = """You are a clinical trial protocol analyst working for a \
liability insurer. Extract the key facts of the protocol the user provides.

For every extracted field also give a confidence score from 0 to 100:
- 90-100: stated explicitly in the document
- 70-89: inferred from context with reasonable certainty
- 50-69: uncertain, needs human verification
- 0-49: guess, the user should fill it in manually

Use null for fields that are not present. Respond with a single JSON object only."""

EXTRACTION_USER_PROMPT = """Analyze this clinical trial protocol and extract the trial facts.

<protocol>
{text}
</protocol>

Return a JSON object matching this JSON schema:
{schema}

Notes:
- trialPhase uses the protocol's own wording, e.g. "I期", "II期", "Phase I/II"
- drugType is the drug category (small molecule, biologic, antibody, vaccine, cell therapy...)
- risks lists risk factors such as minors, oncology patients, first-in-human, repeated dosing
- confidence maps each extracted field name to its score

Return ONLY valid JSON, no other text."""


def analyze_protocol(
    text: str,
    llm_api_key: str = "",
    llm_model: str = "",
    llm_provider: str = "openai",
    max_chars: int = 15000,
) -> ExtractionResult:
    """
    Extract intake fields and confidence scores from protocol text.

    Uses the LLM when an API key is provided and falls back to regex
    heuristics if the call fails.

    Args:
        text: Protocol text
        llm_api_key: API key for LLM calls
        llm_model: Model to use for LLM calls
        llm_provider: LLM provider ("openai" or "anthropic")
        max_chars: Maximum number of characters sent to the LLM

    Returns:
        ExtractionResult ready for reconciliation
    """
    if not text or not text.strip():
        raise ValueError("Protocol text is empty")

    if llm_api_key:
        try:
            return _analyze_with_llm(text[:max_chars], llm_api_key, llm_model, llm_provider)
        except Exception as e:
            logger.warning(f"LLM extraction failed, falling back to heuristics: {e}")

    return _analyze_with_heuristics(text)


def _analyze_with_llm(
    text: str,
    llm_api_key: str,
    llm_model: str,
    llm_provider: str,
) -> ExtractionResult:
    logger.info(f"Analyzing protocol using LLM ({llm_provider}/{llm_model}), {len(text)} chars")

    client = create_llm_client(
        provider=llm_provider,
        api_key=llm_api_key,
        model=llm_model or None,
    )
    prompt = EXTRACTION_USER_PROMPT.format(
        text=text,
        schema=json.dumps(load_schema("protocol_extraction"), indent=2),
    )
    data = client.extract_json(prompt, system=EXTRACTION_SYSTEM_PROMPT)

    errors = validate_extraction_payload(data)
    if errors:
        logger.warning(f"Extraction payload has {len(errors)} schema problems: {errors[:3]}")

    return ExtractionResult.from_payload(data)


# =============================================================================
# Heuristic extraction
# =============================================================================

_PHASE_PATTERNS = [
    re.compile(r"(I/II|II/III|III|II|IV|I|[ⅠⅡⅢⅣ]|[1-4])\s*期"),
    re.compile(r"phase\s*(I/II|II/III|III|II|IV|I|[1-4])(?![A-Za-z0-9])", re.IGNORECASE),
    re.compile(r"(BE)\s*试验|生物等效性"),
]

_FIELD_PATTERNS: dict[str, list[re.Pattern[str]]] = {
    "protocolNumber": [
        re.compile(r"(?:方案编号|试验编号)\s*[:：]\s*([A-Za-z0-9][\w\-./]*)"),
        re.compile(r"protocol\s+(?:no\.?|number|id)\s*[:：]?\s*([A-Za-z0-9][\w\-./]*)", re.I),
    ],
    "protocolName": [
        re.compile(r"(?:方案名称|试验名称)\s*[:：]\s*([^\n]+)"),
        re.compile(r"(?:protocol\s+)?title\s*[:：]\s*([^\n]+)", re.I),
    ],
    "sponsor": [
        re.compile(r"(?:申办方|申办者)\s*[:：]\s*([^\n，。,;；]+)"),
        re.compile(r"sponsor\s*[:：]\s*([^\n,;]+)", re.I),
    ],
    "indication": [
        re.compile(r"适应症\s*[:：]\s*([^\n，。,;；]+)"),
        re.compile(r"indication\s*[:：]\s*([^\n,;]+)", re.I),
    ],
    "subjectCount": [
        re.compile(r"(\d[\d,]*)\s*(?:例|名)"),
        re.compile(r"(\d[\d,]*)\s+(?:subjects|participants|patients)", re.I),
    ],
    "siteCount": [
        re.compile(r"(\d+)\s*(?:个|家)?(?:研究)?中心"),
        re.compile(r"(\d+)\s+(?:study\s+|clinical\s+)?(?:sites|centers|centres)", re.I),
    ],
    "durationMonths": [
        re.compile(r"(\d+)\s*个月"),
        re.compile(r"(\d+)\s+months", re.I),
    ],
}

# (keywords, drug type) - first match wins
_DRUG_TYPES = [
    (("CAR-T", "细胞治疗", "cell therapy"), "细胞治疗"),
    (("基因治疗", "gene therapy"), "基因治疗"),
    (("抗体", "antibody"), "抗体药物"),
    (("疫苗", "vaccine"), "疫苗"),
    (("生物制剂", "biologic"), "生物制剂"),
    (("靶向药",), "靶向药物"),
    (("小分子", "small molecule"), "小分子药物"),
    (("中药",), "中药"),
]

# (keywords, risk tag) in reporting order
_RISK_KEYWORDS = [
    (("未成年", "儿童", "pediatric", "children"), "涉及未成年人"),
    (("肿瘤", "癌", "tumor", "cancer", "oncology"), "涉及肿瘤患者"),
    (("CAR-T",), "CAR-T疗法"),
    (("基因治疗", "gene therapy"), "基因治疗"),
    (("首次人体", "first-in-human", "first in human"), "首次人体试验"),
    (("孕妇", "pregnant"), "涉及孕妇"),
    (("老年", "elderly"), "涉及老年受试者"),
    (("多次给药", "repeated dosing", "multiple doses"), "需多次给药"),
    (("注射", "injection"), "注射给药"),
]


def _analyze_with_heuristics(text: str) -> ExtractionResult:
    """Extract intake fields using regex patterns."""
    logger.info("Analyzing protocol using heuristics")

    payload: dict[str, Any] = {}

    phase = _extract_phase(text)
    if phase:
        payload["trialPhase"] = phase

    for field, patterns in _FIELD_PATTERNS.items():
        value = _first_match(text, patterns)
        if value:
            payload[field] = value

    drug_type = _first_keyword(text, _DRUG_TYPES)
    if drug_type:
        payload["drugType"] = drug_type

    payload["risks"] = _extract_risks(text)
    payload["confidence"] = {
        field: HEURISTIC_CONFIDENCE for field in payload if field not in ("risks",)
    }

    return ExtractionResult.from_payload(payload)


def _extract_phase(text: str) -> str | None:
    for pattern in _PHASE_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(0).strip()
    return None


def _first_match(text: str, patterns: list[re.Pattern[str]]) -> str | None:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match.group(1).strip()
    return None


def _contains(text: str, keyword: str) -> bool:
    return keyword.lower() in text.lower()


def _first_keyword(text: str, table: list[tuple[tuple[str, ...], str]]) -> str | None:
    for keywords, value in table:
        if any(_contains(text, keyword) for keyword in keywords):
            return value
    return None


def _extract_risks(text: str) -> list[str]:
    return [
        tag
        for keywords, tag in _RISK_KEYWORDS
        if any(_contains(text, keyword) for keyword in keywords)
    ]
