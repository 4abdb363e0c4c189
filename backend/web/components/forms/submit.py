from ..base import Component


class SubmitButton(Component):
    def __init__(self, label: str, *, variant: str = "primary", full_width: bool = False):
        self.label = label
        self.variant = variant
        self.full_width = full_width

    def render(self) -> str:
        cls = self.classes("btn", f"btn-{self.variant}", **{"btn-block": self.full_width})
        return f'<button type="submit" class="{cls}">{self.escape(self.label)}</button>'
