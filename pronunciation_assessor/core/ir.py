"""Intermediate representation dataclasses for a pronunciation assessment.

WHY: Every pipeline stage hands data to the next one: intake produces an
audio asset, the recognizer produces timed words, alignment tags them,
scoring reduces them to numbers, and the assembler packages the result.
Typed dataclasses make each hand-off explicit and keep stages decoupled.

HOW: Plain dataclasses and two string enums:
  AudioAsset         — audio bytes plus probed format metadata
  Phoneme            — one phoneme-level accuracy entry
  RecognizedWord     — one timed word from the recognizer (immutable)
  AlignedToken       — a recognized or omitted word with its ErrorType
  FluencyUnit        — one fluency scalar and the duration it covers
  RecognizerResponse — everything the core needs from the recognizer
  ScoreSet           — the five integer scores
  WordResult         — one per-word line of the final result
  AssessmentResult   — the terminal artifact handed to the caller

RULES:
- Times are integer milliseconds
- Scores are in [0, 100]; ScoreSet values are ints
- ErrorType has no Replace member — a substitution is one Insertion plus
  one Omission
- Nothing here is persisted; objects live for one assessment call
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorType(str, Enum):
    """Per-word error classification produced by alignment."""

    NONE = "None"
    OMISSION = "Omission"
    INSERTION = "Insertion"


class RecognitionStatus(str, Enum):
    """Recognition status reported by the recognizer."""

    SUCCESS = "Success"
    FAILED = "Failed"
    NO_MATCH = "NoMatch"
    INITIAL_SILENCE_TIMEOUT = "InitialSilenceTimeout"
    BABBLE_TIMEOUT = "BabbleTimeout"
    ERROR = "Error"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value: str | None) -> RecognitionStatus:
        """Map a raw status string to a member, UNKNOWN for anything else."""
        for member in cls:
            if member.value == value:
                return member
        return cls.UNKNOWN


@dataclass
class AudioAsset:
    """Audio bytes for one assessment request.

    RULES:
    - byte_length always equals len(data)
    - source_mime_type is the type sniffed at intake, before any conversion
    - duration_s / sample_rate / bit_depth / channels are None until probed
    - Never persisted
    """

    data: bytes
    mime_type: str
    byte_length: int
    source_mime_type: str | None = None
    duration_s: float | None = None
    sample_rate: int | None = None
    bit_depth: int | None = None
    channels: int | None = None


@dataclass(frozen=True)
class Phoneme:
    phoneme: str
    accuracy_score: float
    offset_ms: int = 0
    duration_ms: int = 0


@dataclass(frozen=True)
class RecognizedWord:
    """One timed word unit from the recognizer.

    WHY: Alignment copies recognizer words into AlignedTokens; freezing
    them guarantees the recognizer's data is never mutated downstream.

    RULES:
    - accuracy_score is in [0, 100]
    - phonemes is empty when the recognizer gave no phoneme detail
    """

    word: str
    offset_ms: int
    duration_ms: int
    accuracy_score: float
    phonemes: tuple[Phoneme, ...] = ()

    @classmethod
    def omitted(cls, reference_word: str) -> RecognizedWord:
        """Zero-filled stand-in for a reference word the speaker skipped."""
        return cls(word=reference_word, offset_ms=0, duration_ms=0, accuracy_score=0.0)


@dataclass(frozen=True)
class AlignedToken:
    word: RecognizedWord
    error_type: ErrorType

    @property
    def text(self) -> str:
        return self.word.word

    @property
    def accuracy_score(self) -> float:
        return self.word.accuracy_score


@dataclass(frozen=True)
class FluencyUnit:
    """A fluency scalar and the audio duration it covers.

    RULES:
    - Word-granular recognizers give one unit per word
    - Utterance-granular recognizers give one unit per utterance
    """

    score: float
    duration_ms: int


@dataclass
class RecognizerResponse:
    """The recognizer's answer, reduced to what the core consumes.

    WHY: The core treats the recognizer as opaque. This dataclass is the
    boundary contract: any recognizer client (Azure, a fake in tests) only
    has to produce one of these.

    RULES:
    - recognized_text: display transcript, shown to the user
    - lexical_text: transcript whose tokens line up 1:1 with words; falls
      back to recognized_text when the recognizer has no lexical form
    - words: recognized (spoken) words in order, one per lexical token
    - fluency_units / prosody_scores may be empty
    """

    recognition_status: RecognitionStatus
    recognized_text: str
    words: list[RecognizedWord] = field(default_factory=list)
    fluency_units: list[FluencyUnit] = field(default_factory=list)
    prosody_scores: list[float] = field(default_factory=list)
    lexical_text: str | None = None

    @property
    def alignment_text(self) -> str:
        return self.lexical_text if self.lexical_text is not None else self.recognized_text


@dataclass(frozen=True)
class ScoreSet:
    accuracy_score: int
    fluency_score: int
    completeness_score: int
    prosody_score: int
    overall_score: int


@dataclass(frozen=True)
class WordResult:
    word: str
    accuracy_score: float
    error_type: ErrorType


@dataclass
class AssessmentResult:
    """The terminal artifact of the pipeline.

    WHY: Callers (CLI, HTTP API, a chat bot) persist or render this; it
    is the pipeline's single externally visible contract.

    HOW: Built by core.assembler.assemble_result. to_dict() produces the
    camelCase wire shape used by the JSON formatter and HTTP API.

    RULES:
    - error_count = number of words whose error_type is not NONE
    - words are in alignment order
    """

    recognition_status: RecognitionStatus
    recognized_text: str
    scores: ScoreSet
    error_count: int
    words: list[WordResult] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "recognitionStatus": self.recognition_status.value,
            "recognizedText": self.recognized_text,
            "accuracyScore": self.scores.accuracy_score,
            "fluencyScore": self.scores.fluency_score,
            "completenessScore": self.scores.completeness_score,
            "pronScore": self.scores.overall_score,
            "prosodyScore": self.scores.prosody_score,
            "errorCount": self.error_count,
            "words": [
                {
                    "word": w.word,
                    "accuracyScore": w.accuracy_score,
                    "errorType": w.error_type.value,
                }
                for w in self.words
            ],
        }
