"""Forms for document templates."""

import os

from django import forms

from .models import Template

INPUT_CLASS = "form-input w-full rounded-lg px-4 py-2.5"
PDF_MAX_BYTES = 5 * 1024 * 1024


def validate_pdf(uploaded_file):
    ext = os.path.splitext(uploaded_file.name)[1].lower()
    if ext != ".pdf":
        raise forms.ValidationError("Only PDF files are allowed.")
    if uploaded_file.size > PDF_MAX_BYTES:
        raise forms.ValidationError("File size is too big. Max is 5MB.")
    head = uploaded_file.read(5)
    uploaded_file.seek(0)
    if head != b"%PDF-":
        raise forms.ValidationError("The uploaded file is not a valid PDF.")


class TemplateForm(forms.Form):
    name = forms.CharField(
        max_length=200,
        error_messages={"required": "Name is required"},
        widget=forms.TextInput(attrs={"class": INPUT_CLASS}),
    )
    type = forms.ChoiceField(
        choices=Template.TYPE_CHOICES,
        widget=forms.Select(attrs={"class": INPUT_CLASS}),
    )
    description = forms.CharField(
        required=False,
        max_length=1000,
        widget=forms.Textarea(attrs={"class": INPUT_CLASS, "rows": 4}),
    )
    signature_required = forms.BooleanField(required=False)
    pdf = forms.FileField(
        required=False,
        widget=forms.ClearableFileInput(attrs={"accept": "application/pdf"}),
    )

    def __init__(self, *args, instance=None, **kwargs):
        self.instance = instance
        if instance is not None and "initial" not in kwargs:
            kwargs["initial"] = {
                "name": instance.name,
                "type": instance.type,
                "description": instance.description,
                "signature_required": instance.signature_required,
            }
        super().__init__(*args, **kwargs)
        if instance is not None:
            # The type of an existing template is fixed.
            self.fields["type"].disabled = True

    def clean_name(self):
        return self.cleaned_data["name"].strip()

    def clean_pdf(self):
        pdf = self.cleaned_data.get("pdf")
        if pdf:
            validate_pdf(pdf)
        elif self.instance is None:
            raise forms.ValidationError("Please upload a PDF file.")
        return pdf


class TemplatePdfForm(forms.Form):
    pdf = forms.FileField(
        widget=forms.ClearableFileInput(attrs={"accept": "application/pdf"}),
    )

    def clean_pdf(self):
        pdf = self.cleaned_data["pdf"]
        validate_pdf(pdf)
        return pdf
