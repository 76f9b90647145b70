"""
Input Analyzer for Midnight Court.

Reads a free-form case description before any LLM call and reports:
- the detected case type (constitutional / criminal / civil / procedural)
- legal entities (articles, sections, case citations, years, parties)
- which building blocks of a case are present (facts, issues, ...)
- a completeness score and a suggested slide count
- up to three concrete suggestions for improving the description

Everything is regex driven and deterministic; analyze() never raises.
"""

import re
from dataclasses import dataclass, field

from midnight_court.config import (
    MAX_INPUT_CHARS,
    MAX_SUGGESTED_SLIDES,
    MIN_INPUT_CHARS,
    MIN_SUGGESTED_SLIDES,
)
from midnight_court.logging_config import debug_log

# Indian legal references
_NAME = r"(?:[A-Z]\.\s?)*[A-Z][A-Za-z]+"
_PARTY = rf"{_NAME}(?:(?:\s+(?:of|and|the|&))*\s+{_NAME})*"

LEGAL_PATTERNS = {
    # "Article 21", "Articles 19(1)(a)", "Article 14 of the Constitution"
    "article": re.compile(r"\b[Aa]rticles?\s+\d+(?:\([^)]+\))*(?:\s+of\s+the\s+Constitution)?"),
    # "Section 302 IPC", "Section 154", "Sections 375-376"
    "ipc_section": re.compile(r"\b[Ss]ections?\s+\d+(?:-\d+)?(?:\s+IPC)?"),
    "crpc_section": re.compile(r"\b[Ss]ections?\s+\d+\s+CrPC"),
    "cpc_section": re.compile(r"\b[Ss]ections?\s+\d+\s+CPC"),
    # "K.S. Puttaswamy v. Union of India", "Maneka Gandhi vs Union of India"
    "case_citation": re.compile(rf"\b{_PARTY}\s+(?:v|vs)\.?\s+{_PARTY}"),
    "year": re.compile(r"\(\d{4}\)"),
}

PARTY_PATTERNS = [
    re.compile(rf"(?i:{role})[:\s]+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*)")
    for role in ("petitioner", "respondent", "plaintiff", "defendant", "accused")
]

# Declaration order is the tie-break order
CASE_TYPE_KEYWORDS = {
    "constitutional": [
        "article", "constitution", "fundamental right", "constitutional validity",
        "judicial review", "writ", "habeas corpus", "mandamus", "certiorari",
        "basic structure", "unconstitutional", "constitutional challenge",
    ],
    "criminal": [
        "ipc", "crpc", "murder", "section 302", "section 307", "section 375",
        "accused", "prosecution", "defense", "evidence", "witness", "testimony",
        "forensic", "conviction", "acquittal", "bail", "fir", "charge sheet",
    ],
    "civil": [
        "cpc", "contract", "breach", "damages", "specific performance",
        "injunction", "plaintiff", "defendant", "tort", "negligence", "property",
        "suit", "decree", "civil dispute", "compensation", "liability",
    ],
    "procedural": [
        "jurisdiction", "appeal", "revision", "review", "limitation", "procedure",
        "service", "pleading", "interim order", "stay",
    ],
}

_KEYWORD_PATTERNS = {
    case_type: [re.compile(rf"\b{re.escape(keyword)}\b") for keyword in keywords]
    for case_type, keywords in CASE_TYPE_KEYWORDS.items()
}

_FACT_WORDS = re.compile(r"\b(fact|event|happened|occurred|incident|timeline|date|when|where)\b", re.I)
_DATE_PATTERN = re.compile(r"\d{1,2}[/-]\d{1,2}[/-]\d{2,4}")
_ISSUE_WORDS = re.compile(r"\b(issue|question|whether|challenge|dispute|matter|contention|ground)\b", re.I)
_VIOLATION_STEMS = re.compile(r"\b(violat|breach|infringe|unconstitutional)", re.I)
_ARGUMENT_WORDS = re.compile(r"\b(argument|contention|submission|claim|assert|maintain|plead)\b", re.I)
_ARGUED_BY = re.compile(r"\b(petitioner|respondent|prosecution|defense)\b.*\bargued\b", re.I)
_EVIDENCE_WORDS = re.compile(
    r"\b(evidence|witness|testimony|forensic|document|exhibit|proof|cctv|fingerprint|dna)\b", re.I
)
_CITATION_WORDS = re.compile(r"\b(judgment|precedent|landmark|held|ruled|decided)\b", re.I)

# Completeness weights
LENGTH_STEPS = (100, 300, 600)
LENGTH_STEP_POINTS = 10
ELEMENT_WEIGHTS = {
    "has_facts": 15,
    "has_legal_issues": 15,
    "has_statutes": 15,
    "has_arguments": 10,
    "has_evidence": 8,
    "has_citations": 7,
}

# (upper length bound, slides); anything longer gets MAX_SUGGESTED_SLIDES
SLIDE_LADDER = ((200, 3), (500, 4), (1000, 5), (1500, 6), (2000, 7))
DEFAULT_SLIDE_COUNT = 5
MAX_SUGGESTIONS = 3

STATUTE_SUGGESTIONS = {
    "constitutional": "Include relevant constitutional articles (e.g., Article 14, Article 21)",
    "criminal": "Mention applicable IPC sections (e.g., Section 302 IPC)",
    "civil": "Reference relevant statutory provisions or contract clauses",
}


def _unique(items) -> list[str]:
    """Deduplicate, keeping first occurrence order."""
    return list(dict.fromkeys(items))


@dataclass
class CaseElements:
    """Which parts of a case description are present."""
    has_facts: bool = False
    has_legal_issues: bool = False
    has_statutes: bool = False
    has_arguments: bool = False
    has_evidence: bool = False
    has_citations: bool = False

    def to_dict(self) -> dict:
        return {
            "hasFacts": self.has_facts,
            "hasLegalIssues": self.has_legal_issues,
            "hasStatutes": self.has_statutes,
            "hasArguments": self.has_arguments,
            "hasEvidence": self.has_evidence,
            "hasCitations": self.has_citations,
        }


@dataclass
class DetectedEntities:
    articles: list[str] = field(default_factory=list)
    sections: list[str] = field(default_factory=list)
    cases: list[str] = field(default_factory=list)
    years: list[str] = field(default_factory=list)
    parties: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "articles": list(self.articles),
            "sections": list(self.sections),
            "cases": list(self.cases),
            "years": list(self.years),
            "parties": list(self.parties),
        }


@dataclass
class Analysis:
    """
    Result of analyzing a case description.

    Attributes:
        case_type: constitutional / criminal / civil / procedural / general
        completeness: 0-100 score
        elements: Presence flags for facts, issues, statutes, ...
        detected_entities: Extracted legal references
        suggestions: At most three improvement hints, most important first
        estimated_slide_count: Suggested deck size (3-8)
        input_length: Length of the trimmed input
    """
    case_type: str = "general"
    completeness: int = 0
    elements: CaseElements = field(default_factory=CaseElements)
    detected_entities: DetectedEntities = field(default_factory=DetectedEntities)
    suggestions: list[str] = field(default_factory=list)
    estimated_slide_count: int = DEFAULT_SLIDE_COUNT
    input_length: int = 0

    def to_dict(self) -> dict:
        return {
            "caseType": self.case_type,
            "completeness": self.completeness,
            "elements": self.elements.to_dict(),
            "detectedEntities": self.detected_entities.to_dict(),
            "suggestions": list(self.suggestions),
            "estimatedSlideCount": self.estimated_slide_count,
            "inputLength": self.input_length,
        }


@dataclass
class InputValidation:
    """Outcome of validate(): errors block generation, warnings do not."""
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    analysis: Analysis | None = None

    def to_dict(self) -> dict:
        result = {"valid": self.valid, "errors": list(self.errors), "warnings": list(self.warnings)}
        if self.analysis is not None:
            result["analysis"] = self.analysis.to_dict()
        return result


def empty_analysis() -> Analysis:
    return Analysis(suggestions=["Start by describing the case facts and legal issues"])


class InputAnalyzer:
    """
    Analyzes and validates case descriptions.

    Example:
        analyzer = InputAnalyzer()
        analysis = analyzer.analyze(text)
        if analysis.completeness < 40:
            print(analysis.suggestions)
    """

    def __init__(self, min_chars: int = MIN_INPUT_CHARS, max_chars: int = MAX_INPUT_CHARS):
        self.min_chars = min_chars
        self.max_chars = max_chars

    def analyze(self, text) -> Analysis:
        """
        Analyze a case description.

        Args:
            text: Raw user input

        Returns:
            Analysis (the empty analysis for empty or non-string input)
        """
        if not isinstance(text, str) or not text.strip():
            return empty_analysis()

        text = text.strip()
        case_type = self.detect_case_type(text)
        entities = self.extract_entities(text)
        elements = self._analyze_elements(text, entities)
        completeness = self._calculate_completeness(elements, len(text))

        analysis = Analysis(
            case_type=case_type,
            completeness=completeness,
            elements=elements,
            detected_entities=entities,
            estimated_slide_count=self.suggest_slide_count(text, elements),
            input_length=len(text),
        )
        analysis.suggestions = self.suggest_improvements(text, analysis)

        debug_log(
            f"[InputAnalyzer] type={case_type} completeness={completeness} "
            f"slides={analysis.estimated_slide_count} length={len(text)}"
        )
        return analysis

    def validate(self, text) -> InputValidation:
        """
        Check that input is usable for generation.

        Length violations are errors; thin legal content only produces
        warnings.
        """
        if not isinstance(text, str) or not text.strip():
            return InputValidation(valid=False, errors=["Input must be a non-empty string"])

        text = text.strip()
        errors = []
        warnings = []

        if len(text) < self.min_chars:
            errors.append(f"Input too short (minimum {self.min_chars} characters for quality results)")
        if len(text) > self.max_chars:
            errors.append(f"Input too long (maximum {self.max_chars} characters)")

        analysis = self.analyze(text)

        if analysis.completeness < 30:
            warnings.append("Input lacks sufficient legal details for quality slides")

        entities = analysis.detected_entities
        has_legal_content = bool(
            entities.articles or entities.sections or entities.cases
            or analysis.elements.has_legal_issues
        )
        if not has_legal_content and len(text) >= self.min_chars:
            warnings.append("Consider adding legal references (articles, sections, or case names)")

        return InputValidation(valid=not errors, errors=errors, warnings=warnings, analysis=analysis)

    def detect_case_type(self, text) -> str:
        """Highest keyword score wins; ties go to the earlier category."""
        if not isinstance(text, str) or not text:
            return "general"

        lowered = text.lower()
        scores = {
            case_type: sum(len(pattern.findall(lowered)) for pattern in patterns)
            for case_type, patterns in _KEYWORD_PATTERNS.items()
        }
        best = max(scores.values())
        if best == 0:
            return "general"
        return next(case_type for case_type, score in scores.items() if score == best)

    def extract_entities(self, text: str) -> DetectedEntities:
        sections = [
            *LEGAL_PATTERNS["ipc_section"].findall(text),
            *LEGAL_PATTERNS["crpc_section"].findall(text),
            *LEGAL_PATTERNS["cpc_section"].findall(text),
        ]
        parties = []
        for pattern in PARTY_PATTERNS:
            parties.extend(match.group(1).strip() for match in pattern.finditer(text))

        return DetectedEntities(
            articles=_unique(match.group(0) for match in LEGAL_PATTERNS["article"].finditer(text)),
            sections=_unique(sections),
            cases=_unique(match.group(0) for match in LEGAL_PATTERNS["case_citation"].finditer(text)),
            years=_unique(LEGAL_PATTERNS["year"].findall(text)),
            parties=_unique(parties),
        )

    def suggest_slide_count(self, text, elements: CaseElements | None = None) -> int:
        if not isinstance(text, str) or not text.strip():
            return DEFAULT_SLIDE_COUNT

        length = len(text.strip())
        count = MAX_SUGGESTED_SLIDES
        for bound, slides in SLIDE_LADDER:
            if length < bound:
                count = slides
                break

        if elements is not None:
            complexity = sum([elements.has_arguments, elements.has_evidence, elements.has_citations])
            if complexity >= 2 and count < MAX_SUGGESTED_SLIDES:
                count += 1

        return max(MIN_SUGGESTED_SLIDES, min(MAX_SUGGESTED_SLIDES, count))

    def suggest_improvements(self, text: str, analysis: Analysis) -> list[str]:
        """Priority-ordered decision table; only the first three survive."""
        elements = analysis.elements
        case_type = analysis.case_type
        length = len(text)
        suggestions = []

        if not elements.has_facts:
            suggestions.append("Add key facts: parties involved, what happened, when it happened")
        if not elements.has_legal_issues:
            suggestions.append("Describe the legal issues or questions to be resolved")
        if not elements.has_statutes and case_type in STATUTE_SUGGESTIONS:
            suggestions.append(STATUTE_SUGGESTIONS[case_type])
        if not elements.has_arguments and length > 200:
            suggestions.append(
                "Include arguments from both sides (petitioner/respondent or prosecution/defense)"
            )
        if not elements.has_evidence and case_type == "criminal" and length > 300:
            suggestions.append("Describe key evidence presented (witnesses, forensic reports, documents)")
        if not elements.has_citations and not analysis.detected_entities.cases and length > 250:
            suggestions.append("Mention relevant case law or landmark judgments if applicable")
        if analysis.completeness < 40 and length >= MIN_INPUT_CHARS:
            suggestions.append("Provide more details about the case for better slide generation")
        if case_type == "constitutional" and "fundamental right" not in text.lower():
            suggestions.append("Specify which fundamental rights are involved")
        if case_type == "criminal" and not elements.has_evidence:
            suggestions.append("Include details about evidence and witness testimony")

        return suggestions[:MAX_SUGGESTIONS]

    # ------------------------------------------------------------------

    def _analyze_elements(self, text: str, entities: DetectedEntities) -> CaseElements:
        return CaseElements(
            has_facts=bool(_FACT_WORDS.search(text) or entities.years or _DATE_PATTERN.search(text)),
            has_legal_issues=bool(_ISSUE_WORDS.search(text) or _VIOLATION_STEMS.search(text)),
            has_statutes=bool(entities.articles or entities.sections),
            has_arguments=bool(_ARGUMENT_WORDS.search(text) or _ARGUED_BY.search(text)),
            has_evidence=bool(_EVIDENCE_WORDS.search(text)),
            has_citations=bool(entities.cases or _CITATION_WORDS.search(text)),
        )

    def _calculate_completeness(self, elements: CaseElements, length: int) -> int:
        score = sum(LENGTH_STEP_POINTS for step in LENGTH_STEPS if length >= step)
        score += sum(
            weight for name, weight in ELEMENT_WEIGHTS.items() if getattr(elements, name)
        )
        return min(100, score)
