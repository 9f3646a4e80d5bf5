"""Cardman admin.

Edits go through the administrative override (CardService.override), so a
card type switch resets the type-specific fields. Registration goes
through the issuer. Both assume the ORM card store. Rule violations are
reported as form errors before anything is saved.
"""

from django import forms
from django.contrib import admin
from django.utils.html import format_html

from cardman import ledger
from cardman.exceptions import CardmanError
from cardman.ledger import CARD_FIELDS, PERSONAL_FIELDS
from cardman.models import Client, Visit
from cardman.service import CardService
from cardman.services.issuer import ClientRegistration

EDITABLE_FIELDS = PERSONAL_FIELDS | CARD_FIELDS


def registration_from(data: dict) -> ClientRegistration:
    """Build issuer input from admin form data."""
    return ClientRegistration(
        first_name=data["first_name"],
        last_name=data.get("last_name", ""),
        email=data.get("email", ""),
        phone=data.get("phone", ""),
        gender=data.get("gender") or "prefer-not-to-say",
        date_of_birth=data.get("date_of_birth"),
        company=data.get("company", ""),
        card_type=data["card_type"],
        initial_points=data.get("points"),
        initial_balance=data.get("balance"),
        discount=data.get("discount"),
        bonus_discount=data.get("bonus_discount"),
        membership=data.get("membership"),
        card_number=data.get("card_number") or None,
    )


class ClientAdminForm(forms.ModelForm):
    """Runs the issuer (add) or override (change) checks during validation."""

    class Meta:
        model = Client
        fields = "__all__"

    def clean(self):
        data = super().clean()
        if self.errors:
            return data
        try:
            if self.instance._state.adding:
                CardService.issuer().build_card(registration_from(data))
            else:
                changes = self.changed_editable_fields()
                if changes:
                    record = CardService.lookup(self.instance.card_number)
                    ledger.admin_override(record, **changes)
        except CardmanError as e:
            raise forms.ValidationError(e.message, code=e.code.lower())
        return data

    def changed_editable_fields(self) -> dict:
        return {k: self.cleaned_data[k] for k in self.changed_data if k in EDITABLE_FIELDS}


class VisitInline(admin.TabularInline):
    model = Visit
    extra = 0
    readonly_fields = ["timestamp", "points_earned", "total_points"]
    ordering = ["-timestamp"]

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = [
        "card_number",
        "name",
        "card_type_badge",
        "card_status",
        "membership",
        "visit_count",
        "last_visit",
    ]
    list_filter = ["card_type", "membership"]
    search_fields = ["card_number", "first_name", "last_name", "email", "phone"]
    readonly_fields = ["id", "last_visit", "created_at", "updated_at"]
    inlines = [VisitInline]
    form = ClientAdminForm
    actions = ["confirm_visit"]

    def get_readonly_fields(self, request, obj=None):
        if obj:
            return [*self.readonly_fields, "card_number"]
        return self.readonly_fields

    def card_type_badge(self, obj):
        colors = {
            "gift": "#198754",
            "discount": "#fd7e14",
            "points": "#0d6efd",
        }
        return format_html(
            '<span style="background:{}; color:#fff; padding:2px 8px; '
            'border-radius:3px; font-size:11px;">{}</span>',
            colors.get(obj.card_type, "#6c757d"),
            obj.get_card_type_display(),
        )

    card_type_badge.short_description = "Card"

    def card_status(self, obj):
        if obj.card_type == "gift":
            return f"EUR {obj.balance or 0}"
        if obj.card_type == "points":
            status = f"{obj.points or 0}/10 pts ({obj.visit_points or 0} lifetime)"
        else:
            status = f"{obj.discount or 0}%"
        if obj.bonus_discount:
            status += f" +{obj.bonus_discount}% bonus"
        return status

    card_status.short_description = "Status"

    def visit_count(self, obj):
        return obj.visits.count()

    visit_count.short_description = "Visits"

    def save_model(self, request, obj, form, change):
        if change:
            changes = form.changed_editable_fields()
            if changes:
                CardService.override(obj.card_number, **changes)
        else:
            record = CardService.register(registration_from(form.cleaned_data))
            obj.pk = record.id
        obj.refresh_from_db()

    def delete_model(self, request, obj):
        CardService.delete(str(obj.pk))

    @admin.action(description="Confirm visit for selected clients")
    def confirm_visit(self, request, queryset):
        for client in queryset:
            CardService.confirm_visit(client.card_number)
        self.message_user(request, f"{queryset.count()} visit(s) confirmed.")
