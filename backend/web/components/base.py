"""
Base Component Class for Norgeskole UI Components

Pages are rendered server-side from small Python components instead of a
template engine, so markup stays testable and every dynamic value passes
through `escape()`.
"""

from typing import Any, Optional
import html


class Component:
    """Base class for all UI components."""

    def render(self) -> str:
        raise NotImplementedError("Subclasses must implement render()")

    @staticmethod
    def escape(text: Optional[Any]) -> str:
        """Escape HTML entities; None becomes an empty string."""
        return html.escape(str(text)) if text is not None else ""

    @staticmethod
    def classes(*args: str, **conditionals: bool) -> str:
        """Build a class string, e.g. classes("tab", active=True) -> "tab active"."""
        classes = [a for a in args if a]
        classes.extend(key for key, value in conditionals.items() if value)
        return " ".join(classes)

    @staticmethod
    def attributes(**attrs: Any) -> str:
        """Build HTML attributes from keyword arguments.

        `class_`/`for_` lose their trailing underscore, inner underscores become
        hyphens (`aria_label` -> `aria-label`), True renders a boolean attribute
        and False/None are skipped.
        """
        result = []
        for key, value in attrs.items():
            if key.endswith("_"):
                key = key[:-1]
            else:
                key = key.replace("_", "-")

            if value is True:
                result.append(key)
            elif value is not False and value is not None:
                result.append(f'{key}="{html.escape(str(value))}"')

        return " ".join(result)
