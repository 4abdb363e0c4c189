from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Protocol

from datastore.entities import DailyWord, LevelText, Profile, Pronunciation, Task, Translation


LEARNER_WORD_LIMIT = 10


class DailyWordsReadRepoProtocol(Protocol):
    def list_daily_words(self, classroom_id: str, *, limit: int = 10) -> List[DailyWord]:
        ...

    def get_daily_word(self, word_id: str) -> Optional[DailyWord]:
        ...

    def list_translations(self, word_id: str) -> List[Translation]:
        ...

    def list_level_texts(self, word_id: str) -> List[LevelText]:
        ...

    def list_pronunciations(self, word_id: str) -> List[Pronunciation]:
        ...

    def list_tasks(self, word_id: str) -> List[Task]:
        ...


@dataclass
class ListLearnerWordsInput:
    learner: Profile


class ListLearnerWordsUseCase:
    def __init__(self, repo: DailyWordsReadRepoProtocol) -> None:
        self._repo = repo

    def execute(self, req: ListLearnerWordsInput) -> List[DailyWord]:
        """Return up to ten words of the learner's classroom, newest date first.

        Learners without a classroom see an empty list.
        """
        if not req.learner.classroom_id:
            return []
        return self._repo.list_daily_words(req.learner.classroom_id, limit=LEARNER_WORD_LIMIT)


@dataclass
class DailyWordDetail:
    word: DailyWord
    translation: Optional[Translation]
    level_text: Optional[LevelText]
    pronunciations: List[Pronunciation] = field(default_factory=list)
    tasks: List[Task] = field(default_factory=list)


@dataclass
class GetDailyWordInput:
    learner: Profile
    word_id: str


class GetDailyWordUseCase:
    def __init__(self, repo: DailyWordsReadRepoProtocol) -> None:
        self._repo = repo

    def execute(self, req: GetDailyWordInput) -> Optional[DailyWordDetail]:
        """Return the word tailored to the learner, or None if not visible.

        Behavior:
            - Words from other classrooms are treated as missing.
            - The translation matches the learner's mother tongue (l1).
            - The level text matches the learner's difficulty level; tasks are
              limited to that level as well.
        """
        word = self._repo.get_daily_word(req.word_id)
        if word is None or word.classroom_id != req.learner.classroom_id:
            return None
        l1 = (req.learner.l1 or "").lower()
        translation = next((t for t in self._repo.list_translations(word.id) if t.language_code == l1), None)
        level = req.learner.difficulty_level
        level_text = next((t for t in self._repo.list_level_texts(word.id) if t.level == level), None)
        tasks = [t for t in self._repo.list_tasks(word.id) if t.level == level]
        return DailyWordDetail(
            word=word,
            translation=translation,
            level_text=level_text,
            pronunciations=self._repo.list_pronunciations(word.id),
            tasks=tasks,
        )


__all__ = [
    "LEARNER_WORD_LIMIT",
    "ListLearnerWordsInput",
    "ListLearnerWordsUseCase",
    "DailyWordDetail",
    "GetDailyWordInput",
    "GetDailyWordUseCase",
]
