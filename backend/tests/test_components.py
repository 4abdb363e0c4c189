"""
UI components: toasts, role navigation, layout escaping and the word cards.
"""
from __future__ import annotations

from components import AuthForm, DailyWordCard, DailyWordDetailCard, InviteRegistrationForm, Layout, Toast, TOASTS
from components.navigation import Navigation
from components.toast import toast_code_for
from datastore.entities import DailyWord, LevelText, Translation
from identity_access.errors import EmailConfirmationPending, InvalidInviteCode, NorgeskoleError
from learning.usecases.daily_words import DailyWordDetail


def test_toast_catalog_covers_error_codes():
    for code in ("logged_in", "registered", "csrf", "invalid_credentials", "invalid_invite_code", "email_confirmation_pending"):
        assert code in TOASTS


def test_unknown_toast_renders_nothing():
    assert Toast("finnes-ikke").render() == ""
    assert Toast(None).render() == ""


def test_toast_variants():
    success = Toast("registered").render()
    error = Toast("invalid_credentials").render()
    assert "toast--success" in success and 'role="status"' in success
    assert "Din konto er opprettet" in success
    assert "toast--error" in error and 'role="alert"' in error


def test_toast_code_for_errors():
    assert toast_code_for(InvalidInviteCode("malformed")) == "invalid_invite_code"
    assert toast_code_for(EmailConfirmationPending()) == "email_confirmation_pending"

    class _Unlisted(NorgeskoleError):
        code = "unlisted"

    assert toast_code_for(_Unlisted()) == "generic_remote_error"


def test_navigation_is_role_based():
    teacher = Navigation({"role": "teacher", "name": "Kari"}, "/teacher/classrooms", csrf_token="tok").render()
    learner = Navigation({"role": "learner", "name": "Ola"}, "/elev").render()

    assert 'href="/teacher/classrooms"' in teacher
    assert 'aria-current="page"' in teacher
    assert "/elev" not in teacher
    assert "/teacher" not in learner
    assert 'action="/auth/logout"' in teacher
    assert 'value="tok"' in teacher


def test_anonymous_navigation_has_no_logout():
    assert "/auth/logout" not in Navigation(None).render()


def test_layout_escapes_title_and_shows_toast():
    html = Layout(title="<Dagens ord>", content="<p>innhold</p>", toast="logged_out").render()
    assert "&lt;Dagens ord&gt; - Norgeskole" in html
    assert "<p>innhold</p>" in html
    assert "Du er nå logget ut." in html


def test_auth_form_tabs():
    teacher = AuthForm().render()
    learner = AuthForm(active_tab="elev", values={"invite_code": "kode1234"}, errors={"invite_code": "Ugyldig invitasjonskode."}).render()
    fallback = AuthForm(active_tab="rektor").render()

    assert 'action="/auth/login"' in teacher
    assert 'action="/auth/register"' in learner
    assert 'value="kode1234"' in learner
    assert "Ugyldig invitasjonskode." in learner
    assert 'action="/auth/login"' in fallback


def test_invite_form_escapes_code_and_labels_role():
    html = InviteRegistrationForm(code='a"b', role="learner", signed_in=False).render()
    assert "Du er invitert som <strong>Elev</strong>" in html
    assert 'action="/invite/a&quot;b"' in html


def test_daily_word_card_links_to_detail():
    html = DailyWordCard("w1", "hus", "2024-05-01", "Hjem").render()
    assert 'href="/elev/daily-word/w1"' in html
    assert "Hjem" in html


def test_detail_card_placeholders():
    word = DailyWord(id="w1", norwegian="hus", date="2024-05-01", classroom_id="c1")
    empty = DailyWordDetailCard(DailyWordDetail(word=word, translation=None, level_text=None), l1="pl", level=4).render()
    full = DailyWordDetailCard(
        DailyWordDetail(
            word=word,
            translation=Translation(id="t", dailyword_id="w1", language_code="pl", text="dom"),
            level_text=LevelText(id="l", dailyword_id="w1", level=4, text="<b>Huset</b>"),
        ),
        l1="pl",
        level=4,
    ).render()

    assert "Ingen oversettelse på ditt morsmål ennå." in empty
    assert "Ingen tekst for nivå 4 ennå." in empty
    assert "Oversettelse (Polsk)" in full
    assert "&lt;b&gt;Huset&lt;/b&gt;" in full
