"""
Navigation Component for Norgeskole

Role-based navigation (admin / teacher / learner). Every role only sees links
to its own area; the route guard enforces the same split server-side.
"""

from typing import Any, Dict, List, Optional, Tuple

from identity_access.domain import ROLE_LABELS_NO

from .base import Component


NavItem = Tuple[str, str]  # (href, label)

NAV_ITEMS: Dict[str, List[NavItem]] = {
    "admin": [
        ("/admin", "Oversikt"),
    ],
    "teacher": [
        ("/teacher", "Dashboard"),
        ("/teacher/create-daily-word", "Nytt dagens ord"),
        ("/teacher/classrooms", "Klasserom"),
        ("/teacher/tests", "Ukentlige tester"),
        ("/teacher/profile", "Profil"),
    ],
    "learner": [
        ("/elev", "Dagens ord"),
        ("/elev/profile", "Profil"),
    ],
}


class Navigation(Component):
    """Top navigation with role links, user info and a logout form."""

    def __init__(self, user: Optional[Dict[str, Any]] = None, current_path: str = "/", csrf_token: str = ""):
        self.user = user
        self.current_path = current_path
        self.csrf_token = csrf_token

    def _active_href(self, items: List[NavItem]) -> Optional[str]:
        # Best prefix match so /teacher/classrooms does not also light up /teacher.
        best = None
        for href, _ in items:
            if self.current_path == href or self.current_path.startswith(href + "/"):
                if best is None or len(href) > len(best):
                    best = href
        return best

    def render(self) -> str:
        if not self.user:
            return (
                '<nav class="topnav" role="navigation" aria-label="Hovednavigasjon">'
                '<a class="topnav__brand" href="/">Norgeskole Hjelper</a>'
                "</nav>"
            )
        role = str(self.user.get("role") or "")
        items = NAV_ITEMS.get(role, [])
        active = self._active_href(items)
        links = []
        for href, label in items:
            attrs = self.attributes(
                href=href,
                class_=self.classes("topnav__link", active=(href == active)),
                aria_current="page" if href == active else None,
            )
            links.append(f"<a {attrs}>{self.escape(label)}</a>")
        name = self.user.get("name") or self.user.get("email") or ""
        return (
            '<nav class="topnav" role="navigation" aria-label="Hovednavigasjon">'
            '<a class="topnav__brand" href="/">Norgeskole Hjelper</a>'
            f'<div class="topnav__links">{"".join(links)}</div>'
            '<div class="topnav__user">'
            f'<span class="topnav__name">{self.escape(name)}</span>'
            f'<span class="topnav__role">{self.escape(ROLE_LABELS_NO.get(role, ""))}</span>'
            '<form method="post" action="/auth/logout" class="topnav__logout">'
            f'<input type="hidden" name="csrf_token" value="{self.escape(self.csrf_token)}">'
            '<button type="submit" class="btn btn-link">Logg ut</button>'
            "</form>"
            "</div>"
            "</nav>"
        )
