# Norgeskole Component System
# Pure Python Components for type-safe HTML generation

from .base import Component
from .layout import Layout
from .toast import Toast, TOASTS
from .cards import DailyWordCard, DailyWordDetailCard, DashboardCard, DashboardTile
from .forms import (
    FormField,
    TextInputField,
    SelectField,
    SubmitButton,
    AuthForm,
    InviteRegistrationForm,
    ClassroomCreateForm,
    InviteLinkCreateForm,
    DailyWordCreateForm,
    ProfileForm,
)

__all__ = [
    "Component",
    "Layout",
    "Toast",
    "TOASTS",
    "DailyWordCard",
    "DailyWordDetailCard",
    "DashboardCard",
    "DashboardTile",
    "FormField",
    "TextInputField",
    "SelectField",
    "SubmitButton",
    "AuthForm",
    "InviteRegistrationForm",
    "ClassroomCreateForm",
    "InviteLinkCreateForm",
    "DailyWordCreateForm",
    "ProfileForm",
]
