"""Template operations, always scoped to the owning user."""

import logging

from django.core.files.storage import default_storage
from django.db import transaction as db_transaction

from ..models import Template

logger = logging.getLogger(__name__)


def create_template(name, type, description, signature_required, user):
    """Create a template; the user's first of its type becomes default."""
    has_same_type = Template.objects.filter(type=type, user=user).exists()
    template = Template.objects.create(
        name=name,
        type=type,
        description=description,
        signature_required=signature_required,
        user=user,
        is_default=not has_same_type,
    )
    logger.info(
        "Template %s (%s) created by user %s", template.pk, type, user.pk
    )
    return template


def update_template(id, name, description, signature_required, user):
    template = Template.objects.get(pk=id, user=user)
    template.name = name
    template.description = description
    template.signature_required = signature_required
    template.save(
        update_fields=[
            "name",
            "description",
            "signature_required",
            "updated_at",
        ]
    )
    return template


def template_pdf_path(user_id, template_id):
    return f"templates/{user_id}/{template_id}.pdf"


def update_template_pdf(template_id, pdf_file, pdf_name, pdf_size, user):
    """Store the template's PDF and record its name and size.

    The file lives at a fixed path per template, replacing any earlier
    upload. Returns None when the template does not belong to ``user``
    or no file was given.
    """
    template = Template.objects.filter(pk=template_id, user=user).first()
    if template is None or not pdf_file:
        return None

    path = template_pdf_path(user.pk, template.pk)
    if default_storage.exists(path):
        default_storage.delete(path)
    saved = default_storage.save(path, pdf_file)

    template.pdf_url = default_storage.url(saved)
    template.pdf_size = pdf_size
    template.pdf_name = pdf_name
    template.save(
        update_fields=["pdf_url", "pdf_size", "pdf_name", "updated_at"]
    )
    logger.info("PDF stored for template %s at %s", template.pk, saved)
    return template


def make_inactive(id, user):
    template = Template.objects.get(pk=id, user=user)
    template.is_active = False
    template.is_default = False
    template.save(update_fields=["is_active", "is_default", "updated_at"])
    return template


def make_active(id, user):
    template = Template.objects.get(pk=id, user=user)
    template.is_active = True
    template.save(update_fields=["is_active", "updated_at"])
    return template


def make_default(id, type, user):
    """Make ``id`` the only default template of ``type`` for ``user``."""
    with db_transaction.atomic():
        template = Template.objects.get(pk=id, user=user)
        Template.objects.filter(type=type, user=user).update(
            is_default=False
        )
        template.is_default = True
        template.save(update_fields=["is_default", "updated_at"])
    logger.info(
        "Template %s is now the default %s template for user %s",
        template.pk,
        type,
        user.pk,
    )
    return template


def get_template_by_id(id, user):
    return Template.objects.filter(pk=id, user=user).first()


def get_templates(user, page=1, per_page=8):
    """One page of the user's templates, most recently updated first.

    Returns ``(templates, total)``.
    """
    queryset = Template.objects.filter(user=user).order_by("-updated_at")
    page = max(int(page), 1)
    start = (page - 1) * per_page
    return list(queryset[start : start + per_page]), queryset.count()


def is_template_default_for_type(template_id, type, user):
    template = Template.objects.filter(
        pk=template_id, type=type, user=user
    ).first()
    return template.is_default if template else None
