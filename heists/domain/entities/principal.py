"""Principal (signed-in identity) and public user profile."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Principal:
    """An authenticated user identity.

    ``display_name`` is the user's codename; it is None until the sign-up
    flow has set it on the identity provider.
    """

    uid: str
    display_name: str | None = None
    email: str | None = None


@dataclass(frozen=True)
class UserProfile:
    """Public profile stored in the ``users`` collection (id + codename)."""

    id: str
    codename: str
