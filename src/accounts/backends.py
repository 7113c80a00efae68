"""Authentication backend accepting a username or an email address."""

from django.contrib.auth import get_user_model
from django.contrib.auth.backends import ModelBackend

User = get_user_model()


class EmailOrUsernameBackend(ModelBackend):
    """Look the account up by email when the login contains an '@'."""

    def authenticate(self, request, username=None, password=None, **kwargs):
        if not username or password is None:
            return None

        lookup = (
            {"email__iexact": username}
            if "@" in username
            else {"username": username}
        )
        matches = list(User.objects.filter(**lookup)[:2])
        if len(matches) != 1:
            # Unknown or ambiguous login; run the hasher anyway
            User().set_password(password)
            return None

        user = matches[0]
        if user.check_password(password) and self.user_can_authenticate(user):
            return user
        return None
