"""
Base classes for Unfold admin in Depotman.

Provides BaseModelAdmin and BaseTabularInline with compact textareas
(notes, metadata JSON) and read-only defaults for ledger-backed models.
"""

from decimal import Decimal

from django import forms
from django.contrib.admin.widgets import AdminTextareaWidget
from unfold.admin import ModelAdmin, TabularInline
from unfold.widgets import UnfoldAdminTextareaWidget

TEXTAREA_WIDGETS = (forms.Textarea, AdminTextareaWidget, UnfoldAdminTextareaWidget)


def format_money(value: Decimal | None) -> str:
    """Two decimal places, "-" for None."""
    if value is None:
        return "-"
    return f"{value:,.2f}"


def format_datetime(dt) -> str:
    """YYYY-MM-DD HH:MM, "-" for None."""
    if dt:
        return dt.strftime('%Y-%m-%d %H:%M')
    return '-'


def compact_textareas(fields, *, max_width=False) -> None:
    """Halve the rows of every textarea widget in a form's base_fields."""
    for field in fields.values():
        widget = field.widget
        if not isinstance(widget, TEXTAREA_WIDGETS):
            continue

        try:
            rows = int(widget.attrs.get("rows", 4))
        except (ValueError, TypeError):
            rows = 4
        widget.attrs["rows"] = max(1, rows // 2)

        if max_width:
            widget.attrs["style"] = "width: 100%; max-width: 42rem;"


class BaseTabularInline(TabularInline):
    """TabularInline with compact textareas."""

    def get_formset(self, request, obj=None, **kwargs):
        formset = super().get_formset(request, obj, **kwargs)
        compact_textareas(formset.form.base_fields)
        return formset


class BaseModelAdmin(ModelAdmin):
    """ModelAdmin with compact textareas aligned to other form fields."""

    compressed_fields = True

    def get_form(self, request, obj=None, **kwargs):
        form = super().get_form(request, obj, **kwargs)
        compact_textareas(form.base_fields, max_width=True)
        return form


class ReadOnlyModelAdmin(BaseModelAdmin):
    """Rows only change through the Depotman services."""

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
