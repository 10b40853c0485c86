"""Forms for the leaderboard app.

The rank endpoint takes a single query parameter. The form validates that
it is present and exposes both the raw value and its normalized form.
"""

from __future__ import annotations

from django import forms

from .extraction.text import normalize_identifier


class RankQueryForm(forms.Form):
    """Validates the ``handle`` query parameter of a rank lookup."""

    handle = forms.CharField(
        max_length=200,
        strip=True,
        error_messages={'required': 'Handle is required'},
    )

    def clean_handle(self) -> str:
        value = self.cleaned_data['handle']
        if not normalize_identifier(value):
            raise forms.ValidationError('Handle is required')
        return value
