from django.urls import path

from . import views

app_name = "inventory"

urlpatterns = [
    path("", views.asset_index, name="asset_index"),
    path("assets/new/", views.asset_create, name="asset_create"),
    path("assets/<int:pk>/edit/", views.asset_edit, name="asset_edit"),
    path("api/model-filters/", views.model_filters, name="model_filters"),
    path(
        "api/asset-index-settings/",
        views.asset_index_settings,
        name="asset_index_settings",
    ),
    path("scanner/", views.scanner, name="scanner"),
    path("scanner/lookup/", views.scan_lookup, name="scan_lookup"),
    path("scanner/blockers/", views.scan_blockers, name="scan_blockers"),
    path(
        "scanner/assign-custody/",
        views.assign_custody,
        name="assign_custody",
    ),
]
