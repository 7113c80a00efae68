"""Factory Boy factories for tracker test data."""

import factory
from factory.django import DjangoModelFactory


class UserFactory(DjangoModelFactory):
    """Factory for CustomUser model."""

    class Meta:
        model = "accounts.CustomUser"
        skip_postgeneration_save = True

    username = factory.Sequence(lambda n: f"user{n}")
    email = factory.LazyAttribute(lambda o: f"{o.username}@example.com")
    display_name = factory.Faker("name")
    role = "base"
    is_active = True

    @factory.post_generation
    def password(self, create, extracted, **kwargs):
        pwd = extracted or "testpass123!"
        self.set_password(pwd)
        if create:
            self.save(update_fields=["password"])


class CategoryFactory(DjangoModelFactory):
    class Meta:
        model = "inventory.Category"

    name = factory.Sequence(lambda n: f"Category {n}")
    description = factory.Faker("sentence")


class TagFactory(DjangoModelFactory):
    class Meta:
        model = "inventory.Tag"

    name = factory.Sequence(lambda n: f"tag-{n}")


class LocationFactory(DjangoModelFactory):
    class Meta:
        model = "inventory.Location"

    name = factory.Sequence(lambda n: f"Location {n}")
    address = factory.Faker("address")


class TeamMemberFactory(DjangoModelFactory):
    class Meta:
        model = "inventory.TeamMember"

    name = factory.Faker("name")


class KitFactory(DjangoModelFactory):
    class Meta:
        model = "inventory.Kit"

    name = factory.Sequence(lambda n: f"Kit {n}")
    status = "available"


class AssetFactory(DjangoModelFactory):
    """Factory for Asset model. QR codes are not created here."""

    class Meta:
        model = "inventory.Asset"

    title = factory.Sequence(lambda n: f"Asset {n}")
    description = factory.Faker("sentence")
    status = "available"


class QrFactory(DjangoModelFactory):
    class Meta:
        model = "inventory.Qr"

    id = factory.Sequence(lambda n: f"qr{n:06d}")


class BarcodeFactory(DjangoModelFactory):
    class Meta:
        model = "inventory.Barcode"

    asset = factory.SubFactory(AssetFactory)
    type = "code128"
    value = factory.Sequence(lambda n: f"BC-{n:05d}")


class CustodyFactory(DjangoModelFactory):
    class Meta:
        model = "inventory.Custody"

    asset = factory.SubFactory(AssetFactory, status="in_custody")
    custodian = factory.SubFactory(TeamMemberFactory)


class CustomFieldFactory(DjangoModelFactory):
    class Meta:
        model = "inventory.CustomField"

    name = factory.Sequence(lambda n: f"Field {n}")
    type = "text"


class TemplateFactory(DjangoModelFactory):
    class Meta:
        model = "documents.Template"

    name = factory.Sequence(lambda n: f"Template {n}")
    type = "BOOKINGS"
    user = factory.SubFactory(UserFactory)
