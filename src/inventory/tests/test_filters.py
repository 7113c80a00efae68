"""Tests for asset index filtering, sorting and dropdown data."""

import datetime

import pytest

from django.http import QueryDict
from django.utils import timezone

from inventory.factories import (
    AssetFactory,
    CategoryFactory,
    CustodyFactory,
    LocationFactory,
    TagFactory,
    TeamMemberFactory,
)
from inventory.models import Asset
from inventory.services import filters


def q(query_string):
    return QueryDict(query_string)


def titles(queryset):
    return sorted(queryset.values_list("title", flat=True))


# ============================================================
# FILTERING
# ============================================================


@pytest.mark.django_db
class TestFilterAssets:
    def test_status_filter(self):
        AssetFactory(title="A", status="available")
        AssetFactory(title="B", status="checked_out")
        params = q("status=checked_out")
        result = filters.filter_assets(Asset.objects.all(), params)
        assert titles(result) == ["B"]

    def test_unknown_status_is_ignored(self):
        AssetFactory(title="A")
        result = filters.filter_assets(Asset.objects.all(), q("status=bogus"))
        assert titles(result) == ["A"]

    def test_category_values_are_ored(self):
        cameras = CategoryFactory()
        lights = CategoryFactory()
        AssetFactory(title="Cam", category=cameras)
        AssetFactory(title="Light", category=lights)
        AssetFactory(title="Loose", category=None)
        params = q(f"category={cameras.pk}&category=uncategorized")
        result = filters.filter_assets(Asset.objects.all(), params)
        assert titles(result) == ["Cam", "Loose"]

    def test_untagged(self):
        tagged = AssetFactory(title="Tagged")
        tagged.tags.add(TagFactory())
        AssetFactory(title="Bare")
        result = filters.filter_assets(Asset.objects.all(), q("tag=untagged"))
        assert titles(result) == ["Bare"]

    def test_tag_filter_returns_each_asset_once(self):
        red, blue = TagFactory(), TagFactory()
        both = AssetFactory(title="Both")
        both.tags.add(red, blue)
        params = q(f"tag={red.pk}&tag={blue.pk}")
        result = filters.filter_assets(Asset.objects.all(), params)
        assert list(result.values_list("title", flat=True)) == ["Both"]

    def test_without_location(self):
        AssetFactory(title="Placed", location=LocationFactory())
        AssetFactory(title="Nowhere", location=None)
        params = q("location=without-location")
        result = filters.filter_assets(Asset.objects.all(), params)
        assert titles(result) == ["Nowhere"]

    def test_team_member_filter_needs_custody_view(self):
        custody = CustodyFactory(asset__title="Held")
        AssetFactory(title="Free")
        params = q(f"teamMember={custody.custodian_id}")

        hidden = filters.filter_assets(Asset.objects.all(), params)
        assert titles(hidden) == ["Free", "Held"]

        shown = filters.filter_assets(
            Asset.objects.all(), params, can_see_custody=True
        )
        assert titles(shown) == ["Held"]

    def test_without_custody(self):
        CustodyFactory(asset__title="Held")
        AssetFactory(title="Free")
        result = filters.filter_assets(
            Asset.objects.all(),
            q("teamMember=without-custody"),
            can_see_custody=True,
        )
        assert titles(result) == ["Free"]

    def test_search_matches_every_word(self):
        location = LocationFactory(name="Studio B")
        AssetFactory(title="Sony camera", description="", location=location)
        AssetFactory(title="Sony monitor", description="")
        params = q("s=sony studio")
        result = filters.filter_assets(Asset.objects.all(), params)
        assert titles(result) == ["Sony camera"]

    def test_non_numeric_ids_are_ignored(self):
        AssetFactory(title="A", category=CategoryFactory())
        result = filters.filter_assets(Asset.objects.all(), q("category=abc"))
        assert titles(result) == []


# ============================================================
# CLEARING
# ============================================================


class TestClearFilters:
    def test_has_filters_to_clear(self):
        assert filters.has_filters_to_clear(q("tag=1")) is True
        params = q("s=camera&status=available")
        assert filters.has_filters_to_clear(params) is False

    def test_team_member_only_counts_when_enabled(self):
        params = q("teamMember=3")
        assert filters.has_filters_to_clear(params) is True
        disabled = filters.has_filters_to_clear(
            params, disable_team_member_filter=True
        )
        assert disabled is False

    def test_clear_keeps_search_status_and_sort(self):
        params = q(
            "category=1&tag=2&location=3&teamMember=4&s=cam&status=available"
            "&orderBy=title&page=3"
        )
        cleared = filters.clear_filter_params(params)
        assert cleared.dict() == {
            "s": "cam",
            "status": "available",
            "orderBy": "title",
        }

    def test_clear_leaves_team_member_when_disabled(self):
        cleared = filters.clear_filter_params(
            q("teamMember=4&tag=1"), disable_team_member_filter=True
        )
        assert cleared.dict() == {"teamMember": "4"}


# ============================================================
# SORTING AND PAGINATION
# ============================================================


class TestOrdering:
    def test_defaults(self):
        assert filters.get_ordering(q("")) == (
            "createdAt",
            "desc",
            "-created_at",
        )

    def test_title_ascending(self):
        assert filters.get_ordering(q("orderBy=title&orderDirection=asc")) == (
            "title",
            "asc",
            "title",
        )

    def test_invalid_values_fall_back(self):
        order_by, direction, ordering = filters.get_ordering(
            q("orderBy=password&orderDirection=sideways")
        )
        assert (order_by, direction) == ("createdAt", "desc")

    def test_sorting_labels(self):
        assert filters.SORTING_OPTIONS == {
            "title": "Name",
            "createdAt": "Date created",
            "updatedAt": "Date updated",
        }

    def test_page_size(self):
        assert filters.get_page_size(q("")) == 20
        assert filters.get_page_size(q("per_page=50")) == 50
        assert filters.get_page_size(q("per_page=7")) == 20
        assert filters.get_page_size(q("per_page=x")) == 20

    def test_view(self):
        assert filters.get_view(q("view=availability")) == "availability"
        assert filters.get_view(q("view=grid")) == "list"


@pytest.mark.django_db
class TestSortedQueryset:
    def test_updated_at_descending(self):
        old = AssetFactory(title="Old")
        new = AssetFactory(title="New")
        Asset.objects.filter(pk=old.pk).update(
            updated_at=timezone.now() - datetime.timedelta(days=2)
        )
        _key, _direction, ordering = filters.get_ordering(
            q("orderBy=updatedAt")
        )
        ordered = list(Asset.objects.order_by(ordering))
        assert ordered == [new, Asset.objects.get(pk=old.pk)]


# ============================================================
# DROPDOWN DATA
# ============================================================


@pytest.mark.django_db
class TestModelFilterOptions:
    def test_without_value_item_first(self):
        CategoryFactory(name="Audio")
        data = filters.model_filter_options("category")
        assert data["options"][0] == {
            "id": "uncategorized",
            "name": "Uncategorized",
        }
        assert data["options"][1]["name"] == "Audio"
        assert data["total"] == 1

    def test_query_narrows_options_not_total(self):
        CategoryFactory(name="Audio")
        CategoryFactory(name="Video")
        data = filters.model_filter_options("category", query="aud")
        assert [o["name"] for o in data["options"]] == [
            "Uncategorized",
            "Audio",
        ]
        assert data["total"] == 2

    def test_team_members_exclude_deleted(self):
        TeamMemberFactory(name="Active Person")
        TeamMemberFactory(name="Gone Person", deleted_at=timezone.now())
        data = filters.model_filter_options("teamMember")
        names = [o["name"] for o in data["options"]]
        assert names == ["Without custody", "Active Person"]
        assert data["total"] == 1

    def test_location_options_carry_thumbnail(self):
        LocationFactory(name="Depot")
        option = filters.model_filter_options("location")["options"][1]
        assert option["metadata"] == {"name": "Depot", "thumbnailUrl": None}

    def test_unknown_model(self):
        with pytest.raises(ValueError):
            filters.model_filter_options("user")

    def test_unknown_query_key(self):
        with pytest.raises(ValueError):
            filters.model_filter_options("tag", query_key="password")
