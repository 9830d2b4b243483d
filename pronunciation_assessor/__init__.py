"""Pronunciation assessor: score read-aloud recordings against a reference.

WHY: A learner reads a sentence aloud; we want per-word and overall
scores (accuracy, fluency, completeness, prosody) that stay meaningful
even when words are skipped or added. The external recognizer returns raw
per-word data; this package validates input, normalizes audio, re-aligns
the recognized words against the reference and computes the final scores.

HOW: Three layers. core/ holds the pipeline stages and their data types,
api/ is the Azure Speech recognizer client, and formatters/, cli.py and
server/ render and expose results.

RULES:
- The core never talks HTTP; recognizer and transcoder are injected
- AssessmentResult is the stable contract for every output surface
"""

__version__ = "0.1.0"
