"""Views for document templates."""

import logging
import math

from django.conf import settings
from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.db import transaction as db_transaction
from django.shortcuts import get_object_or_404, redirect, render
from django.views.decorators.http import require_POST

from .forms import TemplateForm, TemplatePdfForm
from .models import Template
from .services import templates as template_service

logger = logging.getLogger(__name__)


@login_required
def template_list(request):
    """The user's templates, newest first."""
    try:
        page = max(int(request.GET.get("page", 1)), 1)
    except (TypeError, ValueError):
        page = 1
    per_page = settings.TEMPLATES_PER_PAGE
    templates, total = template_service.get_templates(
        request.user, page=page, per_page=per_page
    )
    context = {
        "templates": templates,
        "total": total,
        "page": page,
        "total_pages": max(math.ceil(total / per_page), 1),
    }
    template_name = "documents/template_list.html"
    if request.htmx:
        template_name = "documents/partials/template_list_results.html"
    return render(request, template_name, context)


@login_required
def template_create(request):
    if request.method == "POST":
        form = TemplateForm(request.POST, request.FILES)
        if form.is_valid():
            data = form.cleaned_data
            pdf = data["pdf"]
            # A template is never left behind without its PDF.
            with db_transaction.atomic():
                template = template_service.create_template(
                    data["name"],
                    data["type"],
                    data["description"],
                    data["signature_required"],
                    request.user,
                )
                template_service.update_template_pdf(
                    template.pk, pdf, pdf.name, pdf.size, request.user
                )
            messages.success(request, f"Template '{template.name}' created.")
            return redirect("documents:template_list")
    else:
        form = TemplateForm()
    return render(request, "documents/template_form.html", {"form": form})


@login_required
def template_edit(request, pk):
    template = get_object_or_404(Template, pk=pk, user=request.user)
    if request.method == "POST":
        form = TemplateForm(request.POST, request.FILES, instance=template)
        if form.is_valid():
            data = form.cleaned_data
            pdf = data.get("pdf")
            with db_transaction.atomic():
                template_service.update_template(
                    template.pk,
                    data["name"],
                    data["description"],
                    data["signature_required"],
                    request.user,
                )
                if pdf:
                    template_service.update_template_pdf(
                        template.pk, pdf, pdf.name, pdf.size, request.user
                    )
            messages.success(request, f"Template '{data['name']}' updated.")
            return redirect("documents:template_list")
    else:
        form = TemplateForm(instance=template)
    return render(
        request,
        "documents/template_form.html",
        {"form": form, "template": template},
    )


@login_required
@require_POST
def template_upload_pdf(request, pk):
    template = get_object_or_404(Template, pk=pk, user=request.user)
    form = TemplatePdfForm(request.POST, request.FILES)
    if form.is_valid():
        pdf = form.cleaned_data["pdf"]
        template_service.update_template_pdf(
            template.pk, pdf, pdf.name, pdf.size, request.user
        )
        messages.success(request, "PDF uploaded.")
    else:
        for error in form.errors.get("pdf", []):
            messages.error(request, error)
    return redirect("documents:template_edit", pk=template.pk)


@login_required
@require_POST
def template_activate(request, pk):
    template = get_object_or_404(Template, pk=pk, user=request.user)
    template_service.make_active(template.pk, request.user)
    messages.success(request, f"Template '{template.name}' activated.")
    return redirect("documents:template_list")


@login_required
@require_POST
def template_deactivate(request, pk):
    template = get_object_or_404(Template, pk=pk, user=request.user)
    template_service.make_inactive(template.pk, request.user)
    messages.success(request, f"Template '{template.name}' deactivated.")
    return redirect("documents:template_list")


@login_required
@require_POST
def template_make_default(request, pk):
    template = get_object_or_404(Template, pk=pk, user=request.user)
    if not template.is_active:
        messages.error(
            request, "Inactive templates cannot be made the default."
        )
        return redirect("documents:template_list")
    template_service.make_default(template.pk, template.type, request.user)
    messages.success(
        request,
        f"'{template.name}' is now the default "
        f"{template.get_type_display().lower()} template.",
    )
    return redirect("documents:template_list")
