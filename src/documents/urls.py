from django.urls import path

from . import views

app_name = "documents"

urlpatterns = [
    path("", views.template_list, name="template_list"),
    path("new/", views.template_create, name="template_create"),
    path("<int:pk>/edit/", views.template_edit, name="template_edit"),
    path("<int:pk>/pdf/", views.template_upload_pdf, name="template_pdf"),
    path(
        "<int:pk>/activate/",
        views.template_activate,
        name="template_activate",
    ),
    path(
        "<int:pk>/deactivate/",
        views.template_deactivate,
        name="template_deactivate",
    ),
    path(
        "<int:pk>/make-default/",
        views.template_make_default,
        name="template_make_default",
    ),
]
