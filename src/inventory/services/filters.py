"""Asset index filtering, sorting and filter dropdown data."""

from django.db.models import Q

from ..models import Asset, Category, Location, Tag, TeamMember

MAX_SEARCH_WORDS = 20

SORTING_OPTIONS = {
    "title": "Name",
    "createdAt": "Date created",
    "updatedAt": "Date updated",
}
SORT_FIELDS = {
    "title": "title",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}
DEFAULT_SORT = "createdAt"
DEFAULT_DIRECTION = "desc"

PAGE_SIZES = (20, 50, 100)
DEFAULT_PAGE_SIZE = 20

VIEW_LIST = "list"
VIEW_AVAILABILITY = "availability"

# Filter param -> "without value" pseudo option
WITHOUT_VALUE_ITEMS = {
    "category": {"id": "uncategorized", "name": "Uncategorized"},
    "tag": {"id": "untagged", "name": "Without tag"},
    "location": {"id": "without-location", "name": "Without location"},
    "teamMember": {"id": "without-custody", "name": "Without custody"},
}


def clearable_filter_keys(disable_team_member_filter=False):
    """Params removed by "Clear all filters"."""
    keys = ["category", "tag", "location"]
    if not disable_team_member_filter:
        keys.append("teamMember")
    return keys


def _values(params, key):
    return [v.strip() for v in params.getlist(key) if v.strip()]


def has_filters_to_clear(params, disable_team_member_filter=False):
    return any(
        _values(params, key)
        for key in clearable_filter_keys(disable_team_member_filter)
    )


def clear_filter_params(params, disable_team_member_filter=False):
    """Copy of ``params`` without the clearable filters or the page number."""
    cleared = params.copy()
    for key in clearable_filter_keys(disable_team_member_filter) + ["page"]:
        cleared.pop(key, None)
    return cleared


def build_search_query(s):
    """Every word must appear in one of the asset's searchable fields."""
    words = s.split()[:MAX_SEARCH_WORDS]
    combined = Q()
    for word in words:
        combined &= (
            Q(title__icontains=word)
            | Q(description__icontains=word)
            | Q(category__name__icontains=word)
            | Q(location__name__icontains=word)
            | Q(tags__name__icontains=word)
            | Q(qr_codes__id__iexact=word)
            | Q(barcodes__value__iexact=word)
        )
    return combined


def _id_or_without(values, without, field, without_q):
    """OR together the selected ids and the "without value" option."""
    ids = [v for v in values if v != without and v.isdigit()]
    q = Q()
    if ids:
        q |= Q(**{f"{field}__in": ids})
    if without in values:
        q |= without_q
    if not q:
        # Nothing usable was selected
        return Q(pk__in=[])
    return q


def filter_assets(queryset, params, can_see_custody=False):
    """Apply the index's query params to an asset queryset.

    Several values for the same filter are OR'ed; different filters are
    AND'ed. The custodian filter is ignored for users who cannot see
    custody.
    """
    statuses = [
        s
        for s in _values(params, "status")
        if s in dict(Asset.STATUS_CHOICES)
    ]
    if statuses:
        queryset = queryset.filter(status__in=statuses)

    category = _values(params, "category")
    if category:
        queryset = queryset.filter(
            _id_or_without(
                category,
                "uncategorized",
                "category_id",
                Q(category__isnull=True),
            )
        )

    tag = _values(params, "tag")
    if tag:
        queryset = queryset.filter(
            _id_or_without(tag, "untagged", "tags__id", Q(tags__isnull=True))
        )

    location = _values(params, "location")
    if location:
        queryset = queryset.filter(
            _id_or_without(
                location,
                "without-location",
                "location_id",
                Q(location__isnull=True),
            )
        )

    team_member = _values(params, "teamMember")
    if team_member and can_see_custody:
        queryset = queryset.filter(
            _id_or_without(
                team_member,
                "without-custody",
                "custody__custodian_id",
                Q(custody__isnull=True),
            )
        )

    s = params.get("s", "").strip()
    if s:
        queryset = queryset.filter(build_search_query(s))

    return queryset.distinct()


def get_ordering(params):
    """Return ``(order_by, direction, ordering)`` for the sort params."""
    order_by = params.get("orderBy", DEFAULT_SORT)
    if order_by not in SORT_FIELDS:
        order_by = DEFAULT_SORT
    direction = params.get("orderDirection", DEFAULT_DIRECTION)
    if direction not in ("asc", "desc"):
        direction = DEFAULT_DIRECTION
    field = SORT_FIELDS[order_by]
    ordering = field if direction == "asc" else f"-{field}"
    return order_by, direction, ordering


def get_page_size(params):
    try:
        page_size = int(params.get("per_page", DEFAULT_PAGE_SIZE))
    except (TypeError, ValueError):
        return DEFAULT_PAGE_SIZE
    return page_size if page_size in PAGE_SIZES else DEFAULT_PAGE_SIZE


def get_view(params):
    view = params.get("view", VIEW_LIST)
    return view if view in (VIEW_LIST, VIEW_AVAILABILITY) else VIEW_LIST


# --- dynamic dropdown data ---


def _category_option(category):
    return {"id": str(category.pk), "name": category.name}


def _tag_option(tag):
    return {"id": str(tag.pk), "name": tag.name}


def _location_option(location):
    return {
        "id": str(location.pk),
        "name": location.name,
        "metadata": {
            "name": location.name,
            "thumbnailUrl": location.thumbnail_url,
        },
    }


def _team_member_option(member):
    return {
        "id": str(member.pk),
        "name": member.resolved_name(include_email=True),
    }


FILTER_MODELS = {
    "category": (Category.objects.all, _category_option),
    "tag": (Tag.objects.all, _tag_option),
    "location": (Location.objects.all, _location_option),
    "teamMember": (
        lambda: TeamMember.objects.active().select_related("user"),
        _team_member_option,
    ),
}
FILTER_QUERY_KEYS = ("name",)
MAX_FILTER_OPTIONS = 12


def model_filter_options(name, query="", query_key="name"):
    """Options for one filter dropdown.

    Returns ``{"options": [...], "total": n}`` where ``total`` counts every
    row of the model (soft-deleted team members excluded) and the
    "without value" pseudo option is listed first.
    """
    if name not in FILTER_MODELS:
        raise ValueError(f"Unknown filter model '{name}'.")
    if query_key not in FILTER_QUERY_KEYS:
        raise ValueError(f"Unsupported query key '{query_key}'.")
    base, to_option = FILTER_MODELS[name]
    queryset = base()
    total = queryset.count()
    query = query.strip()
    if query:
        queryset = queryset.filter(**{f"{query_key}__icontains": query})
    options = [WITHOUT_VALUE_ITEMS[name]]
    matches = queryset.order_by(query_key)[:MAX_FILTER_OPTIONS]
    options.extend(to_option(obj) for obj in matches)
    return {"options": options, "total": total}
