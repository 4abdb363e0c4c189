"""Use case layer for the Learning context.

Re-export common use cases for convenient imports in tests.
"""

from .daily_words import (
    GetDailyWordInput,
    GetDailyWordUseCase,
    ListLearnerWordsInput,
    ListLearnerWordsUseCase,
)

__all__ = [
    "GetDailyWordInput",
    "GetDailyWordUseCase",
    "ListLearnerWordsInput",
    "ListLearnerWordsUseCase",
]
