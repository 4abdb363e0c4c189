"""
Layout Component for Norgeskole

Main layout wrapper that combines navigation, toast and page content into a
complete HTML document.
"""

from typing import Any, Dict, Optional

from .base import Component
from .navigation import Navigation
from .toast import Toast


class Layout(Component):
    """Main layout component that assembles the complete page"""

    def __init__(
        self,
        title: str,
        content: str,
        user: Optional[Dict[str, Any]] = None,
        current_path: str = "/",
        toast: Optional[str] = None,
        csrf_token: str = "",
    ):
        """
        Args:
            title: Page title (will be escaped)
            content: Main content HTML (pre-rendered components)
            user: Current user dict with `name` and `role` (optional)
            current_path: Current URL path for active navigation highlighting
            toast: Toast catalog code to show above the content (optional)
            csrf_token: Token for the logout form in the navigation
        """
        self.title = title
        self.content = content
        self.user = user
        self.current_path = current_path
        self.toast = toast
        self.csrf_token = csrf_token

    def render(self) -> str:
        nav_html = Navigation(self.user, self.current_path, csrf_token=self.csrf_token).render()
        toast_html = Toast(self.toast).render()
        return f"""<!DOCTYPE html>
<html lang="nb">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <meta name="description" content="Norgeskole Hjelper - dagens ord for norskelever">
    <title>{self.escape(self.title)} - Norgeskole</title>
    <link rel="stylesheet" href="/static/css/norgeskole.css?v=1">
</head>
<body>
    <a href="#main-content" class="skip-link">Gå til hovedinnhold</a>
    {nav_html}
    <div id="toast-region" aria-live="polite">{toast_html}</div>
    <main id="main-content" class="main-content" role="main">
        {self.content}
    </main>
</body>
</html>"""
