"""Data models for VocabRecall."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..utils.helpers import new_id, now_ms
from ..utils.parsing import TextParser


class ItemStatus(str, Enum):
    """Progress of a single flashcard."""
    HIDDEN = "hidden"
    DISCOVERED = "discovered"
    MASTERED = "mastered"


class GamePhase(str, Enum):
    """Which stage of the app the session is in."""
    TOPIC_LIST = "topic-list"
    UPLOAD = "upload"
    PREVIEW = "preview"
    PLAYING = "playing"


class SentenceType(str, Enum):
    """IELTS sentence varieties, in display order."""
    SIMPLE = "Simple"
    COMPLEX = "Complex"
    COMPOUND = "Compound"
    COMPOUND_COMPLEX = "Compound-Complex"


SENTENCE_ORDER = [t.value for t in SentenceType]


@dataclass
class Phonetics:
    """US and UK phonetic transcriptions."""

    us: str = ""
    uk: str = ""

    @classmethod
    def from_value(cls, value: Any) -> Optional["Phonetics"]:
        """
        Normalize stored or upstream phonetics.

        Older records hold a single string; newer ones a {us, uk} mapping.
        Both end up as a Phonetics instance.
        """
        if value is None or value == "":
            return None
        if isinstance(value, Phonetics):
            return value
        if isinstance(value, dict):
            return cls(us=str(value.get("us") or ""), uk=str(value.get("uk") or ""))
        text = str(value)
        return cls(us=text, uk=text)

    def to_dict(self) -> Dict[str, str]:
        return {"us": self.us, "uk": self.uk}


@dataclass
class ExampleSentence:
    """One example sentence with optional translation."""

    type: str
    text: str
    translation: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExampleSentence":
        translation = data.get("translation")
        return cls(
            type=str(data.get("type", "")),
            text=str(data.get("text", "")),
            translation=str(translation) if translation is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type, "text": self.text}
        if self.translation is not None:
            data["translation"] = self.translation
        return data


@dataclass
class VocabItem:
    """A single flashcard: a word and the synonyms that count as answers."""

    word: str
    synonyms: List[str]
    id: str = field(default_factory=new_id)
    status: ItemStatus = ItemStatus.HIDDEN
    user_guesses: List[str] = field(default_factory=list)

    # Enrichment (absent until the provider answers)
    definition: Optional[str] = None
    meaning: Optional[str] = None
    phonetics: Optional[Phonetics] = None
    examples: Optional[List[ExampleSentence]] = None
    synonym_meanings: Optional[List[str]] = None

    @property
    def primary_synonym(self) -> Optional[str]:
        """First synonym ("synonym 1" in the grid)."""
        return self.synonyms[0] if self.synonyms else None

    @property
    def extra_synonyms(self) -> List[str]:
        """Remaining synonyms ("synonym 2+")."""
        return self.synonyms[1:]

    @property
    def remaining_synonyms(self) -> List[str]:
        """Synonyms not yet guessed, compared the way guesses are matched."""
        guessed = {TextParser.fold(g) for g in self.user_guesses}
        return [s for s in self.synonyms if TextParser.fold(s) not in guessed]

    @property
    def has_enrichment(self) -> bool:
        return bool(self.examples) or self.phonetics is not None

    def clear_enrichment(self) -> None:
        """Drop fetched content so it can be generated again."""
        self.meaning = None
        self.phonetics = None
        self.examples = None
        self.synonym_meanings = None

    def apply_enrichment(self, result: "EnrichmentResult") -> None:
        """Write a complete enrichment result onto the item in one step."""
        self.meaning = result.meaning
        self.phonetics = result.phonetics
        self.examples = list(result.examples)
        self.synonym_meanings = (
            list(result.synonym_meanings) if result.synonym_meanings is not None else None
        )
        if result.definition:
            self.definition = result.definition

    def reset_progress(self) -> None:
        self.status = ItemStatus.HIDDEN
        self.user_guesses = []

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VocabItem":
        """
        Build an item from its stored form (camelCase keys).

        Hand-edited records are normalized: hidden items drop their guesses
        and a mastered item without enough guesses is only discovered.
        """
        examples = data.get("examples")
        synonym_meanings = data.get("synonymMeanings")
        item = cls(
            id=str(data.get("id") or new_id()),
            word=str(data.get("word", "")),
            synonyms=[str(s) for s in data.get("synonyms") or []],
            status=ItemStatus(data.get("status", ItemStatus.HIDDEN.value)),
            user_guesses=[str(g) for g in data.get("userGuesses") or []],
            definition=data.get("definition"),
            meaning=data.get("meaning"),
            phonetics=Phonetics.from_value(data.get("phonetics")),
            examples=(
                [ExampleSentence.from_dict(e) for e in examples if isinstance(e, dict)]
                if examples is not None else None
            ),
            synonym_meanings=(
                [str(m) for m in synonym_meanings] if synonym_meanings is not None else None
            ),
        )
        if item.status == ItemStatus.HIDDEN:
            item.user_guesses = []
        elif item.status == ItemStatus.MASTERED and len(item.user_guesses) < len(item.synonyms):
            item.status = ItemStatus.DISCOVERED
        return item

    def to_dict(self) -> Dict[str, Any]:
        """Stored form; optional fields are omitted while absent."""
        data: Dict[str, Any] = {
            "id": self.id,
            "word": self.word,
            "synonyms": list(self.synonyms),
            "userGuesses": list(self.user_guesses),
            "status": self.status.value,
        }
        if self.definition is not None:
            data["definition"] = self.definition
        if self.meaning is not None:
            data["meaning"] = self.meaning
        if self.phonetics is not None:
            data["phonetics"] = self.phonetics.to_dict()
        if self.examples is not None:
            data["examples"] = [e.to_dict() for e in self.examples]
        if self.synonym_meanings is not None:
            data["synonymMeanings"] = list(self.synonym_meanings)
        return data


@dataclass
class Topic:
    """A named, persisted collection of flashcards."""

    name: str
    items: List[VocabItem] = field(default_factory=list)
    id: str = field(default_factory=new_id)
    created_at: int = field(default_factory=now_ms)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Topic":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            items=[VocabItem.from_dict(i) for i in data.get("items") or []],
            created_at=int(data.get("createdAt") or 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "items": [i.to_dict() for i in self.items],
            "createdAt": self.created_at,
        }

    def find_item(self, item_id: str) -> Optional[VocabItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None


@dataclass
class EnrichmentResult:
    """Normalized response of an enrichment provider for one word."""

    meaning: str = "n/a"
    phonetics: Phonetics = field(default_factory=lambda: Phonetics("n/a", "n/a"))
    examples: List[ExampleSentence] = field(default_factory=list)
    definition: Optional[str] = None
    synonym_meanings: Optional[List[str]] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "EnrichmentResult":
        """
        Normalize the JSON object returned by the language model.

        Unknown example types are dropped and the rest are ordered
        Simple, Complex, Compound, Compound-Complex.

        Raises:
            ValueError: If the payload is not a mapping or has the wrong shape
        """
        if not isinstance(payload, dict):
            raise ValueError(f"Expected a JSON object, got {type(payload).__name__}")

        raw_examples = payload.get("examples") or []
        if not isinstance(raw_examples, list):
            raise ValueError("'examples' must be a list")

        examples = [
            ExampleSentence.from_dict(e)
            for e in raw_examples
            if isinstance(e, dict) and e.get("type") in SENTENCE_ORDER
        ]
        examples.sort(key=lambda e: SENTENCE_ORDER.index(e.type))

        synonym_meanings = payload.get("synonymMeanings")
        if synonym_meanings is not None:
            if not isinstance(synonym_meanings, list):
                raise ValueError("'synonymMeanings' must be a list")
            synonym_meanings = [str(m) for m in synonym_meanings]

        definition = payload.get("definition")
        return cls(
            meaning=str(payload.get("meaning") or "n/a"),
            phonetics=Phonetics.from_value(payload.get("phonetics")) or Phonetics("n/a", "n/a"),
            examples=examples,
            definition=str(definition) if definition else None,
            synonym_meanings=synonym_meanings,
        )


@dataclass
class SessionStats:
    """Derived progress counts for the active session."""
    discovered_count: int = 0
    mastered_count: int = 0
    total_count: int = 0
