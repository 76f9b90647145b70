"""
Midnight Court - Slide Content Pipeline.

Turns a legal case description into a structured slide deck:
analysis (analysis), schema-constrained LLM generation (generation),
iterative refinement (refinement) and HTML rendering for PDF export
(rendering). Providers are injected through the clients in midnight_court.ai.
"""

__version__ = "0.1.0"
