"""
Deck Templates for Midnight Court.

A deck template is a prompt structure for one kind of legal presentation:
the slides it must contain, the block kinds each slide should use and the
emphasis rules added to the generation prompt. Templates are read from
config/deck_templates.yaml; every entry there is merged over the built-in
template of the same key, so the app still works when the file is missing.
"""

import copy
import re

import yaml

from midnight_court.config import DECK_TEMPLATES_FILE
from midnight_court.logging_config import debug_log

# Built-in fallbacks. config/deck_templates.yaml carries the full slide
# structures and emphasis rules.
BUILTIN_TEMPLATES = {
    "constitutional_challenge": {
        "name": "Constitutional Challenge",
        "description": "For cases involving constitutional validity, fundamental rights, and judicial review",
        "icon": "⚖️",
        "caseTypes": ["constitutional"],
        "mandatorySlides": [
            "Case Overview",
            "Constitutional Provisions",
            "Grounds of Challenge",
            "Judicial Precedents",
            "Prayer for Relief",
        ],
        "slideStructure": {},
        "promptAdditions": (
            "This is a CONSTITUTIONAL CHALLENGE case. Quote the relevant Articles, "
            "list the grounds of challenge, cite landmark precedents and end with the relief sought.\n"
            "Use _blue_ for Article references, *gold* for constitutional doctrines "
            "and ~red~ for constitutional violations."
        ),
        "exampleKeywords": ["Article", "fundamental right", "unconstitutional", "judicial review", "writ petition"],
        "suggestedSlideCount": 6,
        "useCases": ["Challenging validity of a law", "Fundamental rights violation"],
    },
    "criminal_prosecution": {
        "name": "Criminal Prosecution",
        "description": "For criminal cases with IPC offences, evidence, and witness testimony",
        "icon": "🔒",
        "caseTypes": ["criminal"],
        "mandatorySlides": [
            "Case Overview",
            "Charges and Offences",
            "Material Facts",
            "Evidence Presented",
            "Court Ruling",
        ],
        "slideStructure": {},
        "promptAdditions": (
            "This is a CRIMINAL PROSECUTION case. List the IPC charges, use a timeline for "
            "the material facts and an evidence block for the evidence, then state the ruling.\n"
            "Use _blue_ for IPC sections, ~red~ for offences and *gold* for legal principles."
        ),
        "exampleKeywords": ["IPC", "offence", "evidence", "prosecution", "accused", "witness"],
        "suggestedSlideCount": 6,
        "useCases": ["Murder cases", "Theft and robbery"],
    },
    "civil_dispute": {
        "name": "Civil Dispute",
        "description": "For civil cases involving contracts, torts, property, and damages",
        "icon": "📜",
        "caseTypes": ["civil", "procedural"],
        "mandatorySlides": [
            "Case Overview",
            "Facts in Dispute",
            "Legal Issues",
            "Arguments",
            "Relief Sought",
        ],
        "slideStructure": {},
        "promptAdditions": (
            "This is a CIVIL DISPUTE case. Separate admitted from disputed facts, frame the "
            "legal issues, use twoColumn for plaintiff vs defendant and end with the relief sought.\n"
            "Use _blue_ for statutory sections, *gold* for legal doctrines and ~red~ for breaches."
        ),
        "exampleKeywords": ["contract", "breach", "damages", "tort", "property", "civil suit"],
        "suggestedSlideCount": 5,
        "useCases": ["Breach of contract", "Property disputes"],
    },
    "moot_court": {
        "name": "Moot Court",
        "description": "Structured format for moot court competitions with clear arguments",
        "icon": "🎓",
        "caseTypes": ["constitutional", "criminal", "civil"],
        "mandatorySlides": ["Case Overview", "Issues Raised", "Submissions", "Precedents", "Prayer"],
        "slideStructure": {},
        "promptAdditions": (
            "This is a MOOT COURT presentation. Frame the issues formally, structure the "
            "submissions hierarchically, cite precedents with ratio decidendi and close with the prayer."
        ),
        "exampleKeywords": ["moot court", "submissions", "precedents", "prayer", "legal reasoning"],
        "suggestedSlideCount": 7,
        "useCases": ["Moot court competitions", "Oral arguments preparation"],
    },
    "case_brief": {
        "name": "Case Brief",
        "description": "Academic format with IRAC structure for case analysis",
        "icon": "📚",
        "caseTypes": ["constitutional", "criminal", "civil"],
        "mandatorySlides": ["Case Citation", "Facts", "Issue", "Rule", "Analysis", "Conclusion"],
        "slideStructure": {},
        "promptAdditions": (
            "This is a CASE BRIEF in IRAC format: Issue, Rule, Analysis, Conclusion. "
            "Focus on the ratio decidendi and keep the facts concise."
        ),
        "exampleKeywords": ["case brief", "IRAC", "ratio decidendi", "legal analysis", "judgment"],
        "suggestedSlideCount": 6,
        "useCases": ["Case study presentations", "Exam preparation"],
    },
}

# Case type (from InputAnalyzer) -> template
CASE_TYPE_TEMPLATES = {
    "constitutional": "constitutional_challenge",
    "criminal": "criminal_prosecution",
    "civil": "civil_dispute",
    "procedural": "civil_dispute",
    "general": None,
}

MOOT_COURT_PATTERN = re.compile(r"\b(?:moot|submissions?|precedents?|prayer)\b", re.IGNORECASE)

# Listing fields returned by list_templates()
SUMMARY_FIELDS = (
    "type", "name", "description", "icon", "suggestedSlideCount", "useCases", "exampleKeywords",
)


def load_deck_templates(path=DECK_TEMPLATES_FILE) -> dict:
    """
    Load templates from YAML and merge them over the built-ins.

    Returns:
        Dict of template type -> template dict (each carries its own 'type')
    """
    templates = copy.deepcopy(BUILTIN_TEMPLATES)
    try:
        with open(path, encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
        overrides = data.get('templates', {}) or {}
        for key, template in overrides.items():
            if not isinstance(template, dict):
                debug_log(f"[DeckTemplates] Ignoring malformed template '{key}'")
                continue
            templates.setdefault(key, {}).update(template)
        debug_log(f"[DeckTemplates] Loaded {len(overrides)} template(s) from {path}")
    except FileNotFoundError:
        debug_log(f"[DeckTemplates] {path} not found. Using built-in templates.")
    except (OSError, yaml.YAMLError) as e:
        debug_log(f"[DeckTemplates] ERROR: Failed to load {path}: {e}. Using built-in templates.")

    for key, template in templates.items():
        template["type"] = key
    return templates


class DeckTemplates:
    """
    Lookup and prompt assembly for deck templates.

    Example:
        templates = DeckTemplates()
        template_type = templates.suggest_template(analysis, text)
        config = templates.apply_template(template_type, text)
        if config["templateApplied"]:
            prompt += config["promptAdditions"]
    """

    def __init__(self, templates: dict | None = None):
        self.templates = templates if templates is not None else load_deck_templates()

    def list_templates(self) -> list[dict]:
        """Summary of every template, for the template picker."""
        return [
            {key: copy.deepcopy(template.get(key)) for key in SUMMARY_FIELDS}
            for template in self.templates.values()
        ]

    def get_template(self, template_type: str) -> dict | None:
        template = self.templates.get(template_type)
        return copy.deepcopy(template) if template is not None else None

    def apply_template(self, template_type: str, text: str) -> dict:
        """
        Build the generation config for a template.

        Unknown template types are reported in the result rather than
        raised, so the caller can fall back to an untemplated deck.
        """
        template = self.get_template(template_type)
        if template is None:
            debug_log(f"[DeckTemplates] Template not found: {template_type}")
            return {"input": text, "templateApplied": False, "error": "Template not found"}

        return {
            "input": text,
            "templateType": template["type"],
            "templateName": template.get("name", template["type"]),
            "templateApplied": True,
            "promptAdditions": (template.get("promptAdditions") or "").strip(),
            "mandatorySlides": template.get("mandatorySlides", []),
            "slideStructure": template.get("slideStructure", {}),
            "suggestedSlideCount": template.get("suggestedSlideCount"),
            "exampleKeywords": template.get("exampleKeywords", []),
        }

    def suggest_template(self, analysis, text: str | None = None) -> str | None:
        """
        Recommend a template from an InputAnalyzer result.

        General cases get the moot court template when the text talks about
        submissions, precedents or a prayer; otherwise no recommendation.
        """
        case_type = getattr(analysis, "case_type", None)
        if not case_type:
            return None

        suggested = CASE_TYPE_TEMPLATES.get(case_type)
        if suggested is None and text and MOOT_COURT_PATTERN.search(text):
            suggested = "moot_court"

        if suggested is not None and suggested not in self.templates:
            return None
        return suggested

    def validate_template_match(self, template_type: str, analysis) -> dict:
        """
        Check whether an analyzed input suits a template.

        Returns:
            {valid, warnings, suggestions, matchScore}; valid is False when
            the case type is not one the template was written for
        """
        template = self.templates.get(template_type)
        if template is None:
            return {"valid": False, "error": "Template not found"}

        warnings = []
        suggestions = []
        expected = template.get("caseTypes") or []
        elements = analysis.elements

        if analysis.case_type and expected and analysis.case_type not in expected:
            warnings.append(
                f"This template is designed for {'/'.join(expected)} cases, "
                f"but your input appears to be a {analysis.case_type} case."
            )

        if template_type == "constitutional_challenge":
            if not elements.has_statutes:
                suggestions.append("Include constitutional articles (e.g., Article 14, Article 21)")
            if not elements.has_arguments:
                suggestions.append("Add grounds of challenge and legal arguments")
        elif template_type == "criminal_prosecution":
            if not elements.has_evidence:
                suggestions.append("Include evidence details (forensic, eyewitness, documentary)")
            if not elements.has_statutes:
                suggestions.append("Mention IPC sections and charges")
        elif template_type == "case_brief":
            if not elements.has_citations:
                suggestions.append("Include case citation and court details")
            if not elements.has_legal_issues:
                suggestions.append("Frame the legal issue(s) clearly")

        # Base 50, +20 for a case-type match, +5 per element present (max 30)
        score = 50
        if analysis.case_type in expected:
            score += 20
        score += min(sum(1 for present in elements.to_dict().values() if present) * 5, 30)

        return {
            "valid": not warnings,
            "warnings": warnings,
            "suggestions": suggestions,
            "matchScore": min(score, 100),
        }
