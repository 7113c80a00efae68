"""Views for the inventory app."""

import json
import logging

from django_ratelimit.decorators import ratelimit

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.core.exceptions import PermissionDenied, ValidationError
from django.core.paginator import Paginator
from django.http import HttpResponseNotAllowed, JsonResponse
from django.shortcuts import get_object_or_404, redirect, render
from django.views.decorators.http import require_POST

from .forms import AssetForm, AssignCustodyForm, BarcodeFormSet
from .models import INDEX_COLUMNS, Asset, Category, Location, Tag, TeamMember
from .scanner.blockers import evaluate_blockers
from .scanner.session import ScanSession
from .services import filters
from .services.custody import assign_custody as assign_custody_service
from .services.index_settings import apply_intent, get_index_settings
from .services.permissions import (
    can_assign_custody,
    can_manage_assets,
    can_use_barcodes,
    user_has_custody_view_permission,
)
from .services.resolve import resolve_scan

logger = logging.getLogger(__name__)


# --- Asset index ---


def _index_columns(index_settings):
    labels = dict(INDEX_COLUMNS)
    return [
        {"name": name, "label": labels[name]}
        for name in index_settings.visible_columns
        if name in labels
    ]


@login_required
def asset_index(request):
    """List assets in simple or advanced mode with filters and sorting."""
    params = request.GET
    index_settings = get_index_settings(request.user)
    can_see_custody = user_has_custody_view_permission(request.user)
    disable_team_member_filter = not can_see_custody

    queryset = filters.filter_assets(
        Asset.objects.with_related(), params, can_see_custody=can_see_custody
    )
    order_by, direction, ordering = filters.get_ordering(params)
    queryset = queryset.order_by(ordering, "-pk")

    page_size = filters.get_page_size(params)
    paginator = Paginator(queryset, page_size)
    page_obj = paginator.get_page(params.get("page", 1))
    page_query = params.copy()
    page_query.pop("page", None)

    context = {
        "page_obj": page_obj,
        "page_query": page_query.urlencode(),
        "index_settings": index_settings,
        "columns": _index_columns(index_settings),
        "s": params.get("s", ""),
        "statuses": Asset.STATUS_CHOICES,
        "current_statuses": params.getlist("status"),
        "sorting_options": filters.SORTING_OPTIONS,
        "order_by": order_by,
        "order_direction": direction,
        "page_size": page_size,
        "page_sizes": filters.PAGE_SIZES,
        "view": filters.get_view(params),
        "can_see_custody": can_see_custody,
        "show_custodian_filter": not disable_team_member_filter,
        "has_filters_to_clear": filters.has_filters_to_clear(
            params, disable_team_member_filter
        ),
        "clear_filters_query": filters.clear_filter_params(
            params, disable_team_member_filter
        ).urlencode(),
        "categories": Category.objects.all(),
        "total_categories": Category.objects.count(),
        "tags": Tag.objects.all(),
        "total_tags": Tag.objects.count(),
        "locations": Location.objects.all(),
        "total_locations": Location.objects.count(),
        "team_members": TeamMember.objects.active().select_related("user"),
        "total_team_members": TeamMember.objects.active().count(),
        "without_value_items": filters.WITHOUT_VALUE_ITEMS,
    }

    template_name = "inventory/asset_index.html"
    if request.htmx:
        template_name = "inventory/partials/asset_index_results.html"
    return render(request, template_name, context)


@login_required
def model_filters(request):
    """JSON options for the filter dropdowns."""
    name = request.GET.get("name", "")
    if name == "teamMember" and not user_has_custody_view_permission(
        request.user
    ):
        raise PermissionDenied
    try:
        data = filters.model_filter_options(
            name,
            query=request.GET.get("query", ""),
            query_key=request.GET.get("queryKey", "name"),
        )
    except ValueError as exc:
        return JsonResponse({"error": str(exc)}, status=400)
    return JsonResponse(data)


@login_required
@require_POST
def asset_index_settings(request):
    """Update the user's index preferences from the list header."""
    intent = request.POST.get("intent", "")
    try:
        index_settings = apply_intent(request.user, intent, request.POST)
    except ValidationError as exc:
        return JsonResponse({"error": " ".join(exc.messages)}, status=400)
    return JsonResponse(
        {
            "mode": index_settings.mode,
            "freezeColumn": index_settings.freeze_column,
            "showAssetImage": index_settings.show_image,
            "columns": index_settings.columns,
        }
    )


# --- Asset create/edit ---


def _barcode_formset(request, asset):
    if not can_use_barcodes(request.user):
        return None
    if request.method == "POST":
        return BarcodeFormSet(request.POST, instance=asset, prefix="barcodes")
    return BarcodeFormSet(instance=asset, prefix="barcodes")


def _save_asset(request, form, barcodes):
    """Validate and save; returns the asset or None when invalid."""
    if not form.is_valid():
        return None
    if barcodes is not None and not barcodes.is_valid():
        return None
    try:
        return form.save(request.user, barcodes=barcodes)
    except ValidationError as exc:
        form.add_error("main_image", exc)
        return None


@login_required
def asset_create(request):
    """Create a new asset."""
    if not can_manage_assets(request.user):
        raise PermissionDenied
    barcodes = _barcode_formset(request, Asset())
    if request.method == "POST":
        form = AssetForm(request.POST, request.FILES)
        asset = _save_asset(request, form, barcodes)
        if asset is not None:
            messages.success(request, f"Asset '{asset.title}' created.")
            if form.cleaned_data["add_another"]:
                return redirect("inventory:asset_create")
            return redirect("inventory:asset_index")
    else:
        form = AssetForm(initial={"qr_id": request.GET.get("qrId", "")})

    return render(
        request,
        "inventory/asset_form.html",
        {"form": form, "barcodes": barcodes},
    )


@login_required
def asset_edit(request, pk):
    """Edit an existing asset."""
    asset = get_object_or_404(Asset.objects.with_related(), pk=pk)
    if not can_manage_assets(request.user):
        raise PermissionDenied
    barcodes = _barcode_formset(request, asset)
    if request.method == "POST":
        form = AssetForm(request.POST, request.FILES, instance=asset)
        if _save_asset(request, form, barcodes) is not None:
            messages.success(request, f"Asset '{asset.title}' updated.")
            return redirect("inventory:asset_index")
    else:
        form = AssetForm(instance=asset)

    return render(
        request,
        "inventory/asset_form.html",
        {"form": form, "barcodes": barcodes, "asset": asset},
    )


# --- Scanner ---


@login_required
def scanner(request):
    """Camera/handheld scanner page with the custody drawer."""
    if not can_assign_custody(request.user):
        raise PermissionDenied
    return render(
        request, "inventory/scanner.html", {"form": AssignCustodyForm()}
    )


@login_required
@ratelimit(key="user", rate="60/m", method="GET", block=True)
def scan_lookup(request):
    """Look up one scanned code. Returns JSON."""
    code = request.GET.get("code", "").strip()
    kind, payload, error = resolve_scan(code, request.user)
    if error:
        return JsonResponse({"found": False, "code": code, "error": error})
    return JsonResponse(
        {"found": True, "code": code, "kind": kind, "payload": payload}
    )


@login_required
def scan_blockers(request):
    """Evaluate blockers for a client-held scan session.

    Body: ``{"items": {scan_id: {"kind", "payload", "error"}}}``.
    """
    if request.method != "POST":
        return HttpResponseNotAllowed(["POST"])
    try:
        body = json.loads(request.body or b"{}")
    except json.JSONDecodeError:
        return JsonResponse({"error": "Invalid JSON body."}, status=400)
    if not isinstance(body, dict):
        return JsonResponse({"error": "Expected a JSON object."}, status=400)
    try:
        session = ScanSession.from_dict(body.get("items"))
    except ValueError as exc:
        return JsonResponse({"error": str(exc)}, status=400)
    report = evaluate_blockers(session)
    data = report.to_dict()
    data["asset_ids"] = session.asset_ids()
    data["kit_ids"] = session.kit_ids()
    return JsonResponse(data)


@login_required
@require_POST
def assign_custody(request):
    """Assign custody of the scanned assets and kits to a team member."""
    if not can_assign_custody(request.user):
        raise PermissionDenied
    form = AssignCustodyForm(request.POST)
    if form.is_valid():
        try:
            custodies = assign_custody_service(
                form.cleaned_data["asset_ids"],
                form.cleaned_data["custodian"],
                request.user,
                kit_ids=form.cleaned_data["kit_ids"],
            )
        except ValidationError as exc:
            for message in exc.messages:
                form.add_error(None, message)
        else:
            custodian = form.cleaned_data["custodian"]
            messages.success(
                request,
                f"{len(custodies)} assets are now in custody of "
                f"{custodian.resolved_name()}.",
            )
            return redirect("inventory:asset_index")

    return render(
        request, "inventory/scanner.html", {"form": form}, status=400
    )
