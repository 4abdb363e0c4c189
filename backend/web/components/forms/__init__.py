"""
Form components for Norgeskole.

Provides the basic building blocks (FormField, SubmitButton) and the concrete
forms used by the entry page, the invite page and the dashboards.
"""

from .fields import FormField, TextInputField, SelectField
from .submit import SubmitButton
from .auth_form import AuthForm
from .invite_form import InviteRegistrationForm
from .classroom_form import ClassroomCreateForm, InviteLinkCreateForm
from .daily_word_form import DailyWordCreateForm
from .profile_form import ProfileForm

__all__ = [
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
