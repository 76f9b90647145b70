"""
Tests for the Input Analyzer.

Covers case type detection, entity extraction, completeness scoring,
slide count suggestions and input validation.
"""

import pytest

from midnight_court.analysis.input_analyzer import InputAnalyzer, empty_analysis

CRIMINAL_CASE = (
    "The accused was charged under Section 302 IPC for murder. The prosecution argued that "
    "forensic evidence and the testimony of two witness statements placed him at the scene "
    "on 12/03/2019. The defense contended that the FIR was registered after an unexplained delay "
    "and that the CCTV footage was inconclusive. The Sessions Court held that the chain of "
    "circumstantial evidence was complete and convicted the accused."
)

CIVIL_CASE = (
    "Plaintiff: Ramesh Traders filed a suit for breach of contract and damages against "
    "Defendant: Sharma Builders. The contract required delivery of cement by March 2020. "
    "The defendant failed to deliver, and the plaintiff claims compensation for the loss."
)


@pytest.fixture
def analyzer():
    return InputAnalyzer()


class TestAnalyze:
    """Tests for analyze()."""

    def test_short_constitutional_input(self, analyzer, privacy_case):
        """The privacy case is constitutional with its article, case and year."""
        analysis = analyzer.analyze(privacy_case)

        assert analysis.case_type == "constitutional"
        assert "Article 21" in analysis.detected_entities.articles
        assert "K.S. Puttaswamy v. Union of India" in analysis.detected_entities.cases
        assert "(2017)" in analysis.detected_entities.years
        assert analysis.estimated_slide_count in (3, 4)
        assert analysis.elements.has_statutes is True
        assert analysis.elements.has_citations is True

    def test_criminal_input(self, analyzer):
        analysis = analyzer.analyze(CRIMINAL_CASE)

        assert analysis.case_type == "criminal"
        assert any(section.startswith("Section 302") for section in analysis.detected_entities.sections)
        assert analysis.elements.has_evidence is True
        assert analysis.elements.has_arguments is True

    def test_civil_parties(self, analyzer):
        analysis = analyzer.analyze(CIVIL_CASE)

        assert analysis.case_type == "civil"
        assert "Ramesh Traders" in analysis.detected_entities.parties
        assert "Sharma Builders" in analysis.detected_entities.parties

    def test_general_when_no_keywords(self, analyzer):
        assert analyzer.analyze("A story about a garden and a quiet afternoon.").case_type == "general"

    @pytest.mark.parametrize("value", ["", "   ", None, 42])
    def test_empty_input(self, analyzer, value):
        """Empty or non-string input yields the empty analysis, never an exception."""
        analysis = analyzer.analyze(value)

        assert analysis == empty_analysis()
        assert analysis.completeness == 0
        assert analysis.estimated_slide_count == 5
        assert analysis.suggestions == ["Start by describing the case facts and legal issues"]

    def test_entities_are_deduplicated(self, analyzer):
        text = "Article 14 and Article 21 are engaged. Article 21 protects life (2017) (2017)."
        entities = analyzer.extract_entities(text)

        assert entities.articles == ["Article 14", "Article 21"]
        assert entities.years == ["(2017)"]

    def test_deterministic(self, analyzer):
        assert analyzer.analyze(CRIMINAL_CASE) == analyzer.analyze(CRIMINAL_CASE)

    def test_to_dict_uses_wire_names(self, analyzer, privacy_case):
        result = analyzer.analyze(privacy_case).to_dict()

        assert result["caseType"] == "constitutional"
        assert set(result["elements"]) == {
            "hasFacts", "hasLegalIssues", "hasStatutes", "hasArguments", "hasEvidence", "hasCitations",
        }
        assert "estimatedSlideCount" in result


class TestCompleteness:
    """Tests for the completeness score."""

    def test_bounded(self, analyzer):
        for text in (CRIMINAL_CASE, CIVIL_CASE, "x" * 2500, "Article 21"):
            assert 0 <= analyzer.analyze(text).completeness <= 100

    def test_adding_an_element_never_lowers_the_score(self, analyzer):
        base = "The petitioner filed a writ petition in the High Court seeking relief from the order."
        richer = base + " The key evidence was a forensic report."

        assert analyzer.analyze(richer).completeness >= analyzer.analyze(base).completeness

    def test_length_contributes(self, analyzer):
        short = analyzer.analyze("a" * 50).completeness
        long = analyzer.analyze("a" * 700).completeness
        assert long - short == 30


class TestSlideCount:
    """Tests for suggest_slide_count()."""

    @pytest.mark.parametrize("length,expected", [
        (150, 3), (300, 4), (700, 5), (1200, 6), (1800, 7), (2500, 8),
    ])
    def test_length_ladder(self, analyzer, length, expected):
        assert analyzer.suggest_slide_count("a" * length) == expected

    def test_complexity_adds_a_slide(self, analyzer):
        elements = analyzer.analyze(CRIMINAL_CASE).elements

        plain = analyzer.suggest_slide_count(CRIMINAL_CASE)
        assert analyzer.suggest_slide_count(CRIMINAL_CASE, elements) == plain + 1

    def test_always_within_bounds(self, analyzer):
        for text in ("", "a", "a" * 5000, CRIMINAL_CASE):
            assert 3 <= analyzer.analyze(text).estimated_slide_count <= 8


class TestSuggestions:
    """Tests for improvement suggestions."""

    def test_at_most_three(self, analyzer):
        for text in ("a" * 400, CIVIL_CASE, CRIMINAL_CASE, "Article 21"):
            assert len(analyzer.analyze(text).suggestions) <= 3

    def test_missing_facts_comes_first(self, analyzer):
        analysis = analyzer.analyze("Article 14 challenge to the constitution amendment")
        assert analysis.suggestions[0].startswith("Add key facts")


class TestValidate:
    """Tests for validate()."""

    def test_too_short(self, analyzer):
        result = analyzer.validate("Bail application granted.")

        assert result.valid is False
        assert result.errors == ["Input too short (minimum 100 characters for quality results)"]

    def test_too_long(self, analyzer):
        result = analyzer.validate("a" * 3001)

        assert result.valid is False
        assert result.errors == ["Input too long (maximum 3000 characters)"]

    def test_valid_input_keeps_analysis(self, analyzer):
        result = analyzer.validate(CRIMINAL_CASE)

        assert result.valid is True
        assert result.errors == []
        assert result.analysis.case_type == "criminal"

    def test_thin_content_warns_but_passes(self, analyzer):
        result = analyzer.validate("The garden was lovely this year and many people came to visit it often. " * 2)

        assert result.valid is True
        assert "Consider adding legal references (articles, sections, or case names)" in result.warnings

    def test_empty_input(self, analyzer):
        result = analyzer.validate("   ")
        assert result.valid is False
        assert result.errors == ["Input must be a non-empty string"]
