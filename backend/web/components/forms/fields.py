"""
Form field components.

These small components keep markup consistent across forms: one wrapper for
label, help and error text, and thin helpers for the input types we use.
"""

from typing import Iterable, Optional, Tuple

from ..base import Component


class FormField(Component):
    """Wrapper that renders label, input slot, help, and error text."""

    def __init__(
        self,
        field_id: str,
        label: str,
        *,
        required: bool = False,
        help_text: Optional[str] = None,
        error_text: Optional[str] = None,
        name: Optional[str] = None,
    ) -> None:
        self.field_id = field_id
        self.name = name or field_id
        self.label = label
        self.required = required
        self.help_text = help_text
        self.error_text = error_text

    def _aria(self) -> dict:
        return {
            "aria_describedby": f"{self.field_id}-help" if self.help_text else None,
            "aria_invalid": "true" if self.error_text else "false",
        }

    def render(self, input_html: str) -> str:
        state_class = " form-field--error" if self.error_text else ""
        required_marker = (
            '<span class="form-required" aria-hidden="true">*</span>'
            if self.required
            else ""
        )
        help_html = (
            f'<p class="form-help" id="{self.field_id}-help">{self.escape(self.help_text)}</p>'
            if self.help_text
            else ""
        )
        error_html = (
            f'<p class="form-error" role="alert" id="{self.field_id}-error">{self.escape(self.error_text)}</p>'
            if self.error_text
            else ""
        )
        label_attrs = self.attributes(for_=self.field_id, class_="form-label")
        return (
            f'<div class="form-field{state_class}">'
            f"<label {label_attrs}>"
            f"{self.escape(self.label)}{required_marker}"
            "</label>"
            f"{input_html}"
            f"{help_html}"
            f"{error_html}"
            "</div>"
        )


class TextInputField(FormField):
    """Single-line input (text, email, password, date, number)."""

    def render(
        self,
        *,
        value: str = "",
        input_type: str = "text",
        autocomplete: Optional[str] = None,
        placeholder: Optional[str] = None,
        **attrs: str,
    ) -> str:
        input_attrs = self.attributes(
            id=self.field_id,
            name=self.name,
            type=input_type,
            value=value if input_type != "password" else None,
            autocomplete=autocomplete,
            placeholder=placeholder,
            required=self.required,
            class_="form-input",
            **self._aria(),
            **attrs,
        )
        return super().render(f"<input {input_attrs}>")


class SelectField(FormField):
    """Dropdown with (value, label) options; `selected` marks the current value."""

    def render(
        self,
        *,
        options: Iterable[Tuple[str, str]],
        selected: Optional[str] = None,
        placeholder: Optional[str] = None,
        **attrs: str,
    ) -> str:
        opts = []
        if placeholder is not None:
            opts.append(f'<option value="">{self.escape(placeholder)}</option>')
        for value, label in options:
            opt_attrs = self.attributes(value=value, selected=(value == (selected or "")) and bool(value))
            opts.append(f"<option {opt_attrs}>{self.escape(label)}</option>")
        select_attrs = self.attributes(
            id=self.field_id,
            name=self.name,
            required=self.required,
            class_="form-select",
            **self._aria(),
            **attrs,
        )
        return super().render(f"<select {select_attrs}>{''.join(opts)}</select>")
