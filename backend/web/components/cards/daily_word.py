"""
Daily word cards.

`DailyWordCard` is the compact entry on the learner home page;
`DailyWordDetailCard` shows one word tailored to the learner (translation in
the mother tongue, text at the learner's level, pronunciations and tasks).
"""

from dataclasses import dataclass
from typing import Optional

from learning.usecases.daily_words import DailyWordDetail
from identity_access.domain import MOTHER_TONGUES

from ..base import Component


class DailyWordCard(Component):
    def __init__(self, word_id: str, norwegian: str, date: str, theme: Optional[str] = None):
        self.word_id = word_id
        self.norwegian = norwegian
        self.date = date
        self.theme = theme

    def render(self) -> str:
        theme_html = f'<span class="badge">{self.escape(self.theme)}</span>' if self.theme else ""
        return (
            '<article class="card word-card">'
            f'<a class="word-card__link" href="/elev/daily-word/{self.escape(self.word_id)}">'
            f'<h2 class="word-card__title">{self.escape(self.norwegian)}</h2>'
            f'<p class="word-card__meta"><time datetime="{self.escape(self.date)}">{self.escape(self.date)}</time>{theme_html}</p>'
            "</a>"
            "</article>"
        )


class DailyWordDetailCard(Component):
    def __init__(self, detail: DailyWordDetail, *, l1: Optional[str], level: int):
        self.detail = detail
        self.l1 = l1
        self.level = level

    def _translation(self) -> str:
        t = self.detail.translation
        if t is None:
            return '<p class="text-muted">Ingen oversettelse på ditt morsmål ennå.</p>'
        language = MOTHER_TONGUES.get(t.language_code, t.language_code)
        return (
            '<section class="word-detail__translation">'
            f"<h2>Oversettelse ({self.escape(language)})</h2>"
            f"<p>{self.escape(t.text)}</p>"
            "</section>"
        )

    def _level_text(self) -> str:
        lt = self.detail.level_text
        if lt is None:
            return f'<p class="text-muted">Ingen tekst for nivå {self.level} ennå.</p>'
        image = ""
        if lt.image_url:
            image = f'<img src="{self.escape(lt.image_url)}" alt="{self.escape(lt.image_alt or "")}">'
        return (
            '<section class="word-detail__text">'
            f"<h2>Tekst (nivå {lt.level})</h2>"
            f"<p>{self.escape(lt.text)}</p>{image}"
            "</section>"
        )

    def _pronunciations(self) -> str:
        if not self.detail.pronunciations:
            return ""
        items = "".join(
            f'<li><span>{self.escape(p.language_code)}</span> <audio controls src="{self.escape(p.audio_url)}"></audio></li>'
            for p in self.detail.pronunciations
        )
        return f'<section class="word-detail__audio"><h2>Uttale</h2><ul>{items}</ul></section>'

    def _tasks(self) -> str:
        if not self.detail.tasks:
            return ""
        items = "".join(
            f'<li class="task-item"><span class="badge">{self.escape(t.type)}</span> {self.escape(t.prompt or "")}</li>'
            for t in self.detail.tasks
        )
        return f'<section class="word-detail__tasks"><h2>Oppgaver</h2><ul>{items}</ul></section>'

    def render(self) -> str:
        word = self.detail.word
        image = ""
        if word.image_url:
            image = f'<img class="word-detail__image" src="{self.escape(word.image_url)}" alt="{self.escape(word.image_alt or "")}">'
        theme = f'<span class="badge">{self.escape(word.theme)}</span>' if word.theme else ""
        return (
            '<article class="card word-detail">'
            f'<header><h1 class="word-detail__title">{self.escape(word.norwegian)}</h1>'
            f'<p class="word-detail__meta">{self.escape(word.date)} {theme}</p></header>'
            f"{image}{self._translation()}{self._level_text()}{self._pronunciations()}{self._tasks()}"
            '<p><a href="/elev">Tilbake</a></p>'
            "</article>"
        )


@dataclass
class DashboardTile:
    href: str
    title: str
    description: str


class DashboardCard(Component):
    def __init__(self, tile: DashboardTile):
        self.tile = tile

    def render(self) -> str:
        return (
            f'<a class="card dashboard-card" href="{self.escape(self.tile.href)}">'
            f'<h2 class="card__title">{self.escape(self.tile.title)}</h2>'
            f'<p class="card__description">{self.escape(self.tile.description)}</p>'
            "</a>"
        )
