"""Domain entities."""

from heists.domain.entities.heist import Heist, HeistConverter, NewHeist
from heists.domain.entities.principal import Principal, UserProfile

__all__ = ["Heist", "HeistConverter", "NewHeist", "Principal", "UserProfile"]
