"""
Trivia Content Loading

Typed schemas for the question file, validation reports, and
isolated JSON file reads. A failure here only ever removes the
affected source or record, never the whole plugin.
"""

import json
import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Generic, Iterable, List, Optional, TypeVar, Union

from .question import Difficulty, Question

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULTS_DIR = Path(__file__).parent / "defaults"
DEFAULT_FILES = ("questions.json", "rewards.json", "messages.json")


@dataclass(frozen=True)
class SkipRecord:
    """A record left out during loading, and why."""

    reason: str
    record_id: str


@dataclass
class LoadResult(Generic[T]):
    """
    Outcome of loading one content source.

    Attributes:
        items: Records that passed validation
        skipped: Records that were dropped
    """

    items: List[T] = field(default_factory=list)
    skipped: List[SkipRecord] = field(default_factory=list)

    def skip(self, reason: str, record_id: str) -> None:
        """Record a skipped entry."""
        self.skipped.append(SkipRecord(reason=reason, record_id=record_id))

    def extend(self, other: "LoadResult[T]") -> None:
        """Merge another result into this one."""
        self.items.extend(other.items)
        self.skipped.extend(other.skipped)

    def log_skipped(self, source: str) -> None:
        """Log every skipped record at warning level."""
        for record in self.skipped:
            logger.warning(f"Skipped {record.record_id} in {source}: {record.reason}")


def read_json_file(path: Union[str, Path]) -> Optional[Any]:
    """
    Read a JSON file.

    Args:
        path: File to read

    Returns:
        Parsed JSON, or None if the file is missing or malformed
    """
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as fp:
            return json.load(fp)
    except FileNotFoundError:
        logger.warning(f"Content file not found: {path}")
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error(f"Failed to read {path}: {e}")
    return None


def ensure_default_files(config_dir: Union[str, Path], names: Iterable[str] = DEFAULT_FILES) -> List[Path]:
    """
    Copy built-in content into config_dir for files that do not exist yet.

    Returns:
        Paths that were created
    """
    config_dir = Path(config_dir)
    created = []
    try:
        config_dir.mkdir(parents=True, exist_ok=True)
        for name in names:
            target = config_dir / name
            if target.exists():
                continue
            shutil.copyfile(DEFAULTS_DIR / name, target)
            created.append(target)
            logger.info(f"Installed default {name} into {config_dir}")
    except OSError as e:
        logger.error(f"Failed to install default content into {config_dir}: {e}")
    return created


@dataclass(frozen=True)
class QuestionEntry:
    """One raw entry of the question file."""

    question: str
    answers: List[str]

    @classmethod
    def from_dict(cls, data: Any) -> "QuestionEntry":
        """
        Parse a raw entry.

        Raises:
            ValueError: If the entry is not an object with a prompt and answers
        """
        if not isinstance(data, dict):
            raise ValueError("entry is not an object")

        question = data.get("question")
        if not isinstance(question, str) or not question.strip():
            raise ValueError("missing question text")

        answers = data.get("answers")
        if isinstance(answers, str):
            answers = [answers]
        if not isinstance(answers, list):
            raise ValueError("answers must be a list")

        answers = [a for a in answers if isinstance(a, str) and a.strip()]
        if not answers:
            raise ValueError("no usable answers")

        return cls(question=question, answers=answers)


def parse_question_file(data: Any, source: str = "questions") -> LoadResult[Question]:
    """
    Build questions from a parsed question file.

    Expected shape:
        {"easy": [{"question": "...", "answers": ["..."]}], "hard": [...]}

    Args:
        data: Parsed JSON document
        source: Label used in record ids

    Returns:
        LoadResult with valid questions and skip reasons
    """
    result: LoadResult[Question] = LoadResult()

    if not isinstance(data, dict):
        result.skip("document is not an object keyed by difficulty", source)
        return result

    for label, entries in data.items():
        difficulty = Difficulty.parse(label)
        if difficulty is None:
            result.skip(f"unknown difficulty '{label}'", f"{source}.{label}")
            continue
        if not isinstance(entries, list):
            result.skip("difficulty group is not a list", f"{source}.{label}")
            continue

        for index, raw in enumerate(entries):
            record_id = f"{source}.{label}[{index}]"
            try:
                entry = QuestionEntry.from_dict(raw)
                result.items.append(
                    Question(
                        prompt=entry.question,
                        answers=tuple(entry.answers),
                        difficulty=difficulty,
                        source=source,
                    )
                )
            except ValueError as e:
                result.skip(str(e), record_id)

    return result


def load_question_file(path: Union[str, Path]) -> LoadResult[Question]:
    """Read and parse a question file; a missing file yields an empty result."""
    data = read_json_file(path)
    if data is None:
        return LoadResult()

    result = parse_question_file(data, source=Path(path).stem)
    result.log_skipped(str(path))
    logger.info(f"Loaded {len(result.items)} questions from {path}")
    return result
