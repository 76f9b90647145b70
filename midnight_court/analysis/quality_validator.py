"""
Quality Validator

Scores a generated deck the way a reviewing advocate would:

    structure       25%  slide/block counts, titles, points per block
    legal accuracy  30%  legal terms highlighted, plausible article/section numbers
    formatting      20%  color markers used for the right kind of content
    relevance       25%  overlap with the case description, expected slides

A deck is considered valid at an overall score of 60 or more with no
error-severity issues. Unlike the grammar validator this never rejects a
deck; it only reports.
"""

import re
from dataclasses import dataclass, field

from midnight_court.grammar.block_types import block_text, slide_text
from midnight_court.logging_config import debug_log

QUALITY_WEIGHTS = {
    "structure": 25,
    "legalAccuracy": 30,
    "formatting": 20,
    "relevance": 25,
}
VALID_SCORE = 60

ARTICLE_PATTERN = re.compile(r"Article\s+\d+[A-Z]?(?:\(\d+\))?", re.I)
SECTION_PATTERN = re.compile(
    r"Section\s+\d+[A-Z]?(?:\(\d+\))?(?:\s+(?:IPC|CrPC|CPC|IT Act|Companies Act))?", re.I
)
CASE_PATTERN = re.compile(r"[A-Z][a-zA-Z\s&]+\s+v\.?\s+[A-Z][a-zA-Z\s&]+,?\s*\(?\d{4}\)?")
CASE_WITHOUT_YEAR = re.compile(r"[A-Z][a-zA-Z&]+(?:\s+[A-Za-z&]+)*\s+v\.?\s+[A-Z][a-zA-Z&]+(?:\s+[A-Za-z&]+)*(?!\s*,?\s*\(?\d{4})")
LEGAL_TERMS = re.compile(
    r"fundamental rights?|basic structure|natural justice|due process|judicial review|"
    r"writ jurisdiction|habeas corpus|mandamus|certiorari|prohibition|quo warranto|mens rea|"
    r"actus reus|res judicata|stare decisis|ultra vires|bona fide|prima facie|"
    r"ratio decidendi|obiter dicta",
    re.I,
)
OFFENCES = re.compile(
    r"murder|culpable homicide|rape|theft|robbery|dacoity|cheating|forgery|defamation|"
    r"contempt|breach|violation|offence|crime|illegal|unconstitutional",
    re.I,
)

GOLD_MARKER = re.compile(r"\*([^*]+)\*")
RED_MARKER = re.compile(r"~([^~]+)~")
BLUE_MARKER = re.compile(r"_([^_]+)_")

VALID_ARTICLE = re.compile(r"^Article\s+\d{1,3}[A-Z]?(?:\(\d+\))?(?:\([a-z]\))?$", re.I)
VALID_SECTION = re.compile(r"^Section\s+\d{1,3}[A-Z]?(?:\(\d+\))?(?:\s+[A-Z][A-Za-z\s]+)?$", re.I)
VALID_CASE = re.compile(r"[A-Z][a-zA-Z\s&]+\s+v\.?\s+[A-Z][a-zA-Z\s&]+.*\d{4}", re.I)

OVERVIEW_TITLE = re.compile(r"overview|introduction|case", re.I)
FACTS_TITLE = re.compile(r"facts?|background|events?", re.I)
ISSUES_TITLE = re.compile(r"issues?|questions?|legal|law", re.I)


@dataclass
class QualityIssue:
    severity: str  # error | warning | info
    type: str
    message: str
    suggestion: str = ""
    slide_index: int | None = None
    block_index: int | None = None

    def to_dict(self) -> dict:
        return {
            "severity": self.severity,
            "type": self.type,
            "message": self.message,
            "slideIndex": self.slide_index,
            "blockIndex": self.block_index,
            "suggestion": self.suggestion,
        }


@dataclass
class QualityReport:
    valid: bool
    overall_score: int
    scores: dict = field(default_factory=dict)
    issues: list[QualityIssue] = field(default_factory=list)
    metrics: dict = field(default_factory=dict)

    @property
    def errors(self) -> list[QualityIssue]:
        return [issue for issue in self.issues if issue.severity == "error"]

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "overallScore": self.overall_score,
            "scores": dict(self.scores),
            "issues": [issue.to_dict() for issue in self.issues],
            "metrics": dict(self.metrics),
        }


@dataclass
class CitationReport:
    valid: bool
    valid_citations: int
    total_citations: int
    accuracy: float
    issues: list[QualityIssue] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "validCitations": self.valid_citations,
            "totalCitations": self.total_citations,
            "accuracy": self.accuracy,
            "issues": [issue.to_dict() for issue in self.issues],
        }


def _empty_metrics() -> dict:
    return {
        "avgBlocksPerSlide": 0,
        "avgPointsPerBlock": 0,
        "citationCount": 0,
        "legalTermDensity": 0,
        "formattingCompliance": 0,
    }


def _iter_blocks(deck: dict):
    for slide_index, slide in enumerate(deck["slides"]):
        for block_index, block in enumerate(slide.get("blocks") or []):
            yield slide_index, block_index, block


class QualityValidator:
    """
    Weighted quality scoring for generated decks.

    Example:
        report = QualityValidator().validate_deck(deck, input_text=case_text)
        if not report.valid:
            for issue in report.errors:
                print(issue.message)
    """

    def validate_deck(self, deck, input_text: str | None = None) -> QualityReport:
        """
        Score a deck.

        Args:
            deck: Deck dict
            input_text: Original case description, used for relevance

        Returns:
            QualityReport with per-dimension scores, issues and metrics
        """
        if not isinstance(deck, dict) or not isinstance(deck.get("slides"), list) or not deck["slides"]:
            return QualityReport(
                valid=False,
                overall_score=0,
                scores={name: 0 for name in QUALITY_WEIGHTS},
                issues=[QualityIssue(
                    "error", "structure", "Invalid slide deck: missing slides array",
                    suggestion="Regenerate the slide deck",
                )],
                metrics=_empty_metrics(),
            )

        structure_score, structure_issues = self._score_structure(deck)
        legal_score, legal_issues = self._score_legal_accuracy(deck)
        formatting_score, formatting_issues = self._score_formatting(deck)
        relevance_score, relevance_issues = self._score_relevance(deck, input_text)

        scores = {
            "structure": structure_score,
            "legalAccuracy": legal_score,
            "formatting": formatting_score,
            "relevance": relevance_score,
        }
        overall = round(sum(scores[name] * weight for name, weight in QUALITY_WEIGHTS.items()) / 100)
        issues = structure_issues + legal_issues + formatting_issues + relevance_issues
        has_errors = any(issue.severity == "error" for issue in issues)

        debug_log(f"[QualityValidator] overall={overall} scores={scores} issues={len(issues)}")
        return QualityReport(
            valid=overall >= VALID_SCORE and not has_errors,
            overall_score=overall,
            scores=scores,
            issues=issues,
            metrics=self._calculate_metrics(deck),
        )

    def validate_citations(self, deck) -> CitationReport:
        """Check article, section and case citation formats in every block."""
        issues = []
        valid = 0
        total = 0

        for slide_index, block_index, block in _iter_blocks(deck):
            content = block_text(block)

            for article in ARTICLE_PATTERN.findall(content):
                total += 1
                if VALID_ARTICLE.match(article.strip()):
                    valid += 1
                else:
                    issues.append(QualityIssue(
                        "warning", "citation", f'Invalid article citation format: "{article}"',
                        'Use format: "Article 21" or "Article 19(1)(a)"', slide_index, block_index,
                    ))

            for section in SECTION_PATTERN.findall(content):
                total += 1
                if VALID_SECTION.match(section.strip()):
                    valid += 1
                else:
                    issues.append(QualityIssue(
                        "warning", "citation", f'Invalid section citation format: "{section}"',
                        'Use format: "Section 302 IPC" or "Section 154 CrPC"', slide_index, block_index,
                    ))

            for case in CASE_PATTERN.findall(content):
                total += 1
                if VALID_CASE.search(case.strip()):
                    valid += 1
                else:
                    issues.append(QualityIssue(
                        "info", "citation", f'Case citation could be improved: "{case}"',
                        'Include year and reporter: "Case v. Case, (2023) 1 SCC 1"', slide_index, block_index,
                    ))

        return CitationReport(
            valid=total == 0 or valid / total >= 0.8,
            valid_citations=valid,
            total_citations=total,
            accuracy=(valid / total) * 100 if total else 100.0,
            issues=issues,
        )

    # ------------------------------------------------------------------
    # Dimensions
    # ------------------------------------------------------------------

    def _score_structure(self, deck: dict) -> tuple[int, list[QualityIssue]]:
        issues = []
        score = 100
        slides = deck["slides"]

        if len(slides) < 3:
            issues.append(QualityIssue(
                "error", "structure", f"Too few slides: {len(slides)} (minimum 3)",
                "Add more slides to cover all legal aspects",
            ))
            score -= 30
        elif len(slides) > 8:
            issues.append(QualityIssue(
                "warning", "structure", f"Too many slides: {len(slides)} (maximum 8)",
                "Consolidate content into fewer slides",
            ))
            score -= 15

        for index, slide in enumerate(slides):
            title = slide.get("title")
            if not isinstance(title, str) or not title.strip():
                issues.append(QualityIssue(
                    "error", "structure", f"Slide {index + 1}: Missing title",
                    "Add a clear, descriptive title", index,
                ))
                score -= 10

            blocks = slide.get("blocks") or []
            if not blocks:
                issues.append(QualityIssue(
                    "error", "structure", f"Slide {index + 1}: No content blocks",
                    "Add at least one content block", index,
                ))
                score -= 15
            elif len(blocks) > 2:
                issues.append(QualityIssue(
                    "warning", "structure", f"Slide {index + 1}: Too many blocks ({len(blocks)}, max 2)",
                    "Consolidate content into 1-2 blocks for clarity", index,
                ))
                score -= 10

            for block_index, block in enumerate(blocks):
                if block.get("type") != "text":
                    continue
                points = block.get("data", {}).get("points") or []
                if len(points) < 2:
                    message = f"Too few points ({len(points)}, min 2)"
                    suggestion = "Add more detail or combine with another block"
                elif len(points) > 4:
                    message = f"Too many points ({len(points)}, max 4)"
                    suggestion = "Break into multiple slides or consolidate points"
                else:
                    continue
                issues.append(QualityIssue(
                    "warning", "structure", f"Slide {index + 1}, Block {block_index + 1}: {message}",
                    suggestion, index, block_index,
                ))
                score -= 5

        return max(0, score), issues

    def _score_legal_accuracy(self, deck: dict) -> tuple[int, list[QualityIssue]]:
        issues = []
        score = 100
        term_count = 0
        formatted = 0

        for slide_index, block_index, block in _iter_blocks(deck):
            content = block_text(block)
            for term in LEGAL_TERMS.findall(content):
                term_count += 1
                if re.search(rf"\*{re.escape(term)}\*", content, re.I):
                    formatted += 1
                else:
                    issues.append(QualityIssue(
                        "info", "legal", f'Legal term "{term}" should be formatted in gold',
                        f"Use *{term}* for legal concepts", slide_index, block_index,
                    ))
            issues.extend(self._common_legal_issues(content, slide_index, block_index))

        if term_count:
            score = min(score, (formatted / term_count) * 100 + 20)

        score -= 20 * sum(1 for issue in issues if issue.severity == "error")
        return max(0, round(score)), issues

    def _common_legal_issues(self, content: str, slide_index: int, block_index: int) -> list[QualityIssue]:
        issues = []
        if re.search(r"Article 0\b|Article [0-9]{3,}", content, re.I):
            issues.append(QualityIssue(
                "error", "legal", "Invalid article number detected",
                "Verify article numbers (Constitution has Articles 1-395)", slide_index, block_index,
            ))
        if re.search(r"Section [0-9]{4,} IPC", content, re.I):
            issues.append(QualityIssue(
                "warning", "legal", "Unusual IPC section number",
                "Verify IPC section numbers (typically 1-511)", slide_index, block_index,
            ))
        if CASE_WITHOUT_YEAR.search(content):
            issues.append(QualityIssue(
                "info", "legal", "Case citation missing year",
                "Include year in case citations for completeness", slide_index, block_index,
            ))
        return issues

    def _score_formatting(self, deck: dict) -> tuple[int, list[QualityIssue]]:
        issues = []
        score = 100
        total = 0
        correct = 0

        for slide_index, block_index, block in _iter_blocks(deck):
            content = block_text(block)

            checks = (
                (GOLD_MARKER, lambda t: LEGAL_TERMS.search(t) or CASE_PATTERN.search(t), "gold",
                 "Use gold (*text*) only for legal concepts and case names"),
                (RED_MARKER, lambda t: OFFENCES.search(t), "red",
                 "Use red (~text~) only for violations and offences"),
                (BLUE_MARKER, lambda t: ARTICLE_PATTERN.search(t) or SECTION_PATTERN.search(t), "blue",
                 "Use blue (_text_) only for statutory provisions"),
            )
            for pattern, appropriate, color, suggestion in checks:
                for term in pattern.findall(content):
                    total += 1
                    if appropriate(term):
                        correct += 1
                    else:
                        issues.append(QualityIssue(
                            "info", "formatting", f'"{term}" may not need {color} formatting',
                            suggestion, slide_index, block_index,
                        ))

            for label, pattern, kind in (
                ("Article", ARTICLE_PATTERN, "constitutional"),
                ("Section", SECTION_PATTERN, "statutory"),
            ):
                for reference in pattern.findall(content):
                    if f"_{reference}_" not in content:
                        issues.append(QualityIssue(
                            "warning", "formatting",
                            f'{label} reference "{reference}" should be formatted in blue',
                            f"Use _{reference}_ for {kind} provisions", slide_index, block_index,
                        ))
                        score -= 5

        if total:
            score = min(score, (correct / total) * 100)

        return max(0, round(score)), issues

    def _score_relevance(self, deck: dict, input_text: str | None) -> tuple[int, list[QualityIssue]]:
        if not input_text:
            return 80, []

        issues = []
        score = 100
        slides = deck["slides"]
        deck_content = " ".join(slide_text(slide) for slide in slides).lower()

        input_words = [word for word in input_text.lower().split() if len(word) > 3]
        if input_words:
            relevant = sum(1 for word in input_words if word in deck_content)
            if relevant / len(input_words) < 0.3:
                issues.append(QualityIssue(
                    "warning", "relevance", "Slides may not be closely related to input description",
                    "Ensure slides address the specific case details provided",
                ))
                score -= 20

        titles = [slide.get("title") or "" for slide in slides]
        if not any(OVERVIEW_TITLE.search(title) for title in titles):
            issues.append(QualityIssue(
                "warning", "relevance", "Missing case overview slide",
                "Add a slide introducing the case and parties",
            ))
            score -= 15
        if not any(FACTS_TITLE.search(title) for title in titles):
            issues.append(QualityIssue(
                "warning", "relevance", "Missing facts slide",
                "Add a slide covering material facts",
            ))
            score -= 15
        if not any(ISSUES_TITLE.search(title) for title in titles):
            issues.append(QualityIssue(
                "info", "relevance", "Consider adding legal issues slide",
                "Add a slide framing the legal questions",
            ))
            score -= 5

        return max(0, score), issues

    def _calculate_metrics(self, deck: dict) -> dict:
        slides = deck["slides"]
        total_blocks = 0
        total_points = 0
        citations = 0
        legal_terms = 0
        markers = 0

        for _slide_index, _block_index, block in _iter_blocks(deck):
            total_blocks += 1
            content = block_text(block)
            if block.get("type") == "text":
                total_points += len(block.get("data", {}).get("points") or [])
            citations += (
                len(ARTICLE_PATTERN.findall(content))
                + len(SECTION_PATTERN.findall(content))
                + len(CASE_PATTERN.findall(content))
            )
            legal_terms += len(LEGAL_TERMS.findall(content))
            markers += (
                len(GOLD_MARKER.findall(content))
                + len(RED_MARKER.findall(content))
                + len(BLUE_MARKER.findall(content))
            )

        references = citations + legal_terms
        return {
            "avgBlocksPerSlide": total_blocks / len(slides),
            "avgPointsPerBlock": total_points / total_blocks if total_blocks else 0,
            "citationCount": citations,
            "legalTermDensity": legal_terms / len(slides),
            "formattingCompliance": (markers / references) * 100 if references and markers else 0,
        }
