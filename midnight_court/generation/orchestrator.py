"""
Slide Deck Generator for Midnight Court.

Turns a case description into a validated slide deck:
1. ANALYZE: InputAnalyzer validation and analysis (case type, entities)
2. PROMPT: System preamble + analysis context + optional deck template
3. GENERATE: One schema-constrained call through the injected LLMClient
4. FINALIZE: Parse, normalize and re-validate against the block grammar

The generator never retries; generate_with_retry() is the caller-side
retry policy used by the app.
"""

import json
import time

from midnight_court.ai.llm_client import LLMClient, LLMRequest, LLMResponse, parse_json_response
from midnight_court.analysis.input_analyzer import Analysis, InputAnalyzer
from midnight_court.config import (
    DEFAULT_MODEL_NAME,
    GENERATION_BACKOFF_SECONDS,
    GENERATION_MAX_ATTEMPTS,
    MAX_BLOCKS_PER_SLIDE,
    MAX_GENERATED_SLIDES,
    MIN_GENERATED_SLIDES,
)
from midnight_court.errors import (
    InvalidInput,
    InvalidModelOutput,
    LLMLimitExceeded,
    OperationCancelled,
)
from midnight_court.generation.deck_templates import DeckTemplates
from midnight_court.grammar.block_types import GENERATED_LIMITS, SLIDE_TRANSIENT_FIELDS, TEMPLATE_LIMITS
from midnight_court.grammar.validator import ensure_valid_deck, normalize_deck
from midnight_court.logging_config import Timer, debug_log, warning
from midnight_court.markdown_formatter import get_color_legend
from midnight_court.schemas import slide_deck_schema
from midnight_court.utils.cancellation import CancellationToken, check_cancelled
from midnight_court.utils.timestamps import iso_timestamp

# Errors that a retry cannot fix
NON_RETRYABLE_ERRORS = (LLMLimitExceeded, InvalidInput, OperationCancelled)


class SlideDeckGenerator:
    """
    Generates slide decks from case descriptions.

    Example:
        generator = SlideDeckGenerator(GeminiClient())
        deck = generator.generate(case_text, template_type="criminal_prosecution")
        print(deck["title"], deck["totalSlides"])
    """

    SYSTEM_PROMPT = f"""You are an expert legal presentation designer specializing in Indian law.

Your task is to convert case descriptions into clear, professional presentation slides.

**LEGAL ACCURACY:**
- Cite Articles, Sections and cases exactly as they appear in the description
- Never invent judgments, citations or statutory provisions
- Use full case names (Name v. Name) with the year where known

**BLOCK TYPES YOU CAN USE:**

1. **text** - Bullet points (2-5 points). Data: {{"points": ["point 1", "point 2"]}}
2. **paragraph** - One short paragraph. Data: {{"text": "..."}}
3. **quote** - Legal citations and quotes. Data: {{"quote": "quoted text", "citation": "Source (Year)"}}
4. **callout** - Key rulings and warnings. Data: {{"title": "...", "description": "...", "variant": "info|warning|critical"}}
5. **timeline** - Chronological events. Data: {{"events": [{{"date": "Jan 2020", "event": "FIR registered"}}]}}
6. **evidence** - One evidence item. Data: {{"evidenceName": "Exhibit A", "summary": "...", "citation": "..."}}
7. **twoColumn** - Comparative arguments. Data: {{"leftTitle": "Petitioner", "leftPoints": [...], "rightTitle": "Respondent", "rightPoints": [...]}}
8. **sectionHeader** - Section title inside a slide. Data: {{"title": "..."}}
9. **divider** - Visual separator. Data: {{"style": "solid|dotted|gradient"}}
10. **image** - Image. Data: {{"uri": "...", "caption": "...", "layout": "center|floatLeft|floatRight", "size": "small|medium|large"}}

**INLINE FORMATTING:**
{{legend}}
Markers never nest. Use them sparingly for emphasis.

**SLIDE DESIGN PRINCIPLES:**
- Generate {MIN_GENERATED_SLIDES}-{MAX_GENERATED_SLIDES} slides based on content complexity
- Use at most {MAX_BLOCKS_PER_SLIDE} blocks per slide (1-3 is ideal)
- Each slide should focus on ONE main topic
- First slide: Overview. Last slide: Conclusion/Ruling (if applicable)
- Keep text concise and scannable

**IMPORTANT:**
- Always return valid JSON matching the schema
- Set totalSlides to the number of slides"""

    REFINEMENT_SUFFIX = """

CURRENT PRESENTATION JSON:
{deck_json}

Return the complete presentation as JSON matching the schema, with every slide in its original position."""

    def __init__(
        self,
        llm_client: LLMClient,
        analyzer: InputAnalyzer | None = None,
        templates: DeckTemplates | None = None,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ):
        """
        Initialize the generator.

        Args:
            llm_client: Provider client (Gemini, OpenAI or function proxy)
            analyzer: InputAnalyzer (creates default if None)
            templates: DeckTemplates (loaded from config if None)
            model: Model name passed through to the client
            temperature: Sampling temperature (client default if None)
            max_tokens: Output token cap (client default if None)
        """
        self.llm_client = llm_client
        self.analyzer = analyzer or InputAnalyzer()
        self.templates = templates or DeckTemplates()
        self.model = model or DEFAULT_MODEL_NAME
        self.temperature = temperature
        self.max_tokens = max_tokens

        legend = "\n".join(
            f"- {entry['marker']}{entry['label']}{entry['marker']} ({entry['color']}): "
            f"{entry['description']}, e.g. {entry['example']}"
            for entry in get_color_legend()
        )
        self.system_prompt = self.SYSTEM_PROMPT.replace("{legend}", legend)

    # =========================================================================
    # Prompt assembly
    # =========================================================================

    def build_generation_prompt(self, text: str, analysis: Analysis, template: dict | None = None) -> str:
        """
        Build the user prompt for one generation.

        Args:
            text: Case description
            analysis: InputAnalyzer result for the same text
            template: apply_template() result, or None

        Returns:
            Prompt text (the system preamble is sent separately)
        """
        entities = analysis.detected_entities
        present = [
            name for name, flag in analysis.elements.to_dict().items() if flag
        ]

        sections = [
            "CASE ANALYSIS:",
            f"- Case type: {analysis.case_type}",
            f"- Completeness: {analysis.completeness}%",
            f"- Elements present: {', '.join(present) or 'none'}",
        ]
        if entities.articles:
            sections.append(f"- Articles: {', '.join(entities.articles)}")
        if entities.sections:
            sections.append(f"- Sections: {', '.join(entities.sections)}")
        if entities.cases:
            sections.append(f"- Cases: {', '.join(entities.cases)}")
        if entities.parties:
            sections.append(f"- Parties: {', '.join(entities.parties)}")

        slide_count = analysis.estimated_slide_count
        if template and template.get("templateApplied"):
            slide_count = template.get("suggestedSlideCount") or slide_count
            sections.extend([
                "",
                f"TEMPLATE: {template['templateName']}",
                f"Mandatory slides: {', '.join(template.get('mandatorySlides', []))}",
            ])
            for title, structure in (template.get("slideStructure") or {}).items():
                blocks = ", ".join(structure.get("blocks", []))
                sections.append(f"- {title}: {blocks} ({structure.get('purpose', '')})")
            if template.get("promptAdditions"):
                sections.extend(["", template["promptAdditions"]])

        slide_count = max(MIN_GENERATED_SLIDES, min(MAX_GENERATED_SLIDES, slide_count))
        sections.extend([
            "",
            "Case Description:",
            text.strip(),
            "",
            f"Generate a professional legal presentation with about {slide_count} slides. "
            "Choose appropriate block types for the content. Focus on clarity and legal accuracy.",
        ])
        return "\n".join(sections)

    # =========================================================================
    # Generation
    # =========================================================================

    def generate(
        self,
        text: str,
        analysis: Analysis | None = None,
        template_type: str | None = None,
        cancel_token: CancellationToken | None = None,
        timeout: float | None = None,
    ) -> dict:
        """
        Generate a slide deck from a case description.

        Args:
            text: Case description (100-3000 characters)
            analysis: Precomputed InputAnalyzer result (computed if None)
            template_type: Deck template key, e.g. 'moot_court'
            cancel_token: Checked before the LLM call
            timeout: Deadline in seconds for the LLM call

        Returns:
            Validated deck dict with generatedAt, totalSlides and metadata

        Raises:
            InvalidInput: Empty, too short or too long text; unknown template
            LLMLimitExceeded: Usage quota exhausted (propagated unchanged)
            InvalidModelOutput: Response is not parseable JSON
            SchemaViolation: Response breaks the block grammar
        """
        validation = self.analyzer.validate(text)
        if not validation.valid:
            raise InvalidInput("; ".join(validation.errors))
        for message in validation.warnings:
            debug_log(f"[Orchestrator] Input warning: {message}")
        analysis = analysis or validation.analysis

        template = None
        if template_type:
            template = self.templates.apply_template(template_type, text)
            if not template["templateApplied"]:
                raise InvalidInput(f"Unknown deck template: {template_type}")

        prompt = self.build_generation_prompt(text, analysis, template)
        debug_log(
            f"[Orchestrator] Generating deck: case type {analysis.case_type}, "
            f"input {len(text.strip())} chars, template {template_type or 'none'}"
        )

        check_cancelled(cancel_token, "before generation")
        with Timer("SlideGeneration") as timer:
            response = self.llm_client.generate(self._request(prompt, timeout))

        deck = self._finalize(response)
        deck["generatedAt"] = iso_timestamp()
        deck["metadata"] = {
            "model": response.model or self.model,
            "caseType": analysis.case_type,
            "templateType": template_type,
            "inputLength": len(text.strip()),
            "generationTime": round(timer.duration_ms or 0),
        }
        debug_log(f"[Orchestrator] Generated {deck['totalSlides']} slides: {deck['title']!r}")
        return deck

    def generate_refinement(self, prompt: str, context: dict) -> dict:
        """
        Generator callable for RefinementEngine.refine().

        Args:
            prompt: Refinement prompt built by the engine
            context: {previousSlides, targetSlides, preserveSlides, timeout}

        Returns:
            Refined deck, normalized but not validated. RefinementEngine
            validates only the slides it replaces, so echoed preserved slides
            never abort a refinement.
        """
        previous = context.get("previousSlides") or {}
        snapshot = {
            "title": previous.get("title", ""),
            "totalSlides": len(previous.get("slides") or []),
            "slides": [
                {key: value for key, value in slide.items() if key not in SLIDE_TRANSIENT_FIELDS}
                for slide in previous.get("slides") or []
                if isinstance(slide, dict)
            ],
        }
        full_prompt = prompt + self.REFINEMENT_SUFFIX.format(
            deck_json=json.dumps(snapshot, ensure_ascii=False, indent=2)
        )

        debug_log(
            f"[Orchestrator] Refinement call: targets {context.get('targetSlides')}, "
            f"preserved {context.get('preserveSlides')}"
        )
        response = self.llm_client.generate(self._request(full_prompt, context.get("timeout")))
        return normalize_deck(self._parse_deck(response), TEMPLATE_LIMITS)

    def generate_with_retry(
        self,
        text: str,
        max_attempts: int = GENERATION_MAX_ATTEMPTS,
        backoff_seconds: float = GENERATION_BACKOFF_SECONDS,
        sleep=time.sleep,
        **kwargs,
    ) -> dict:
        """
        generate() with progressive backoff (attempt * backoff_seconds).

        LLMLimitExceeded, InvalidInput and cancellation are raised on the
        first occurrence. The last error is re-raised when every attempt
        fails.
        """
        last_error = None
        for attempt in range(1, max_attempts + 1):
            try:
                debug_log(f"[Orchestrator] Attempt {attempt}/{max_attempts}")
                return self.generate(text, **kwargs)
            except NON_RETRYABLE_ERRORS:
                raise
            except Exception as e:
                last_error = e
                warning(f"[Orchestrator] Attempt {attempt} failed: {e}")
                if attempt < max_attempts:
                    wait = attempt * backoff_seconds
                    debug_log(f"[Orchestrator] Waiting {wait:.1f}s before retry...")
                    sleep(wait)
        raise last_error

    # =========================================================================
    # Helpers
    # =========================================================================

    def _request(self, prompt: str, timeout: float | None) -> LLMRequest:
        return LLMRequest(
            prompt=prompt,
            schema=slide_deck_schema,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            timeout=timeout,
            system_prompt=self.system_prompt,
            schema_name="slide_deck",
        )

    def _parse_deck(self, response: LLMResponse) -> dict:
        deck = response.output_parsed
        if deck is None:
            deck = parse_json_response(response.output_text)
        if deck is None:
            preview = (response.output_text or "")[:200]
            debug_log(f"[Orchestrator] Unparseable response: {preview!r}")
            raise InvalidModelOutput("Model response is not valid JSON")
        if not isinstance(deck, dict):
            raise InvalidModelOutput("Model response is not a JSON object")
        return deck

    def _finalize(self, response: LLMResponse) -> dict:
        """Parse, normalize and validate a deck response."""
        deck = normalize_deck(self._parse_deck(response), GENERATED_LIMITS)
        return ensure_valid_deck(deck, GENERATED_LIMITS)

    @staticmethod
    def get_deck_stats(deck: dict) -> dict | None:
        """
        Block-kind counts and text volume of a deck.

        Returns:
            Stats dict, or None for a deck without slides
        """
        if not isinstance(deck, dict) or not deck.get("slides"):
            return None

        slides = deck["slides"]
        block_types = {}
        total_blocks = 0
        total_text_length = 0
        for slide in slides:
            for block in slide.get("blocks") or []:
                total_blocks += 1
                kind = block.get("type")
                block_types[kind] = block_types.get(kind, 0) + 1
                total_text_length += len(json.dumps(block.get("data"), ensure_ascii=False))

        metadata = deck.get("metadata") or {}
        return {
            "totalSlides": len(slides),
            "totalBlocks": total_blocks,
            "averageBlocksPerSlide": round(total_blocks / len(slides), 1),
            "blockTypes": block_types,
            "totalTextLength": total_text_length,
            "averageTextPerSlide": round(total_text_length / len(slides)),
            "generationTime": metadata.get("generationTime", 0),
            "inputLength": metadata.get("inputLength", 0),
        }
