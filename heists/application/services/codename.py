"""Random codenames given to users at sign-up."""

import secrets

ADJECTIVES = (
    "Swift", "Bold", "Clever", "Silent", "Fierce", "Nimble", "Sly", "Daring",
    "Cunning", "Stealthy", "Quick", "Smooth", "Sharp", "Wise", "Slick",
    "Ghost", "Shadow", "Phantom", "Rogue", "Midnight",
)
COLORS = (
    "Silver", "Golden", "Crimson", "Violet", "Azure", "Emerald", "Obsidian",
    "Ruby", "Sapphire", "Onyx", "Copper", "Bronze", "Jade", "Pearl", "Amber",
    "Scarlet", "Indigo", "Ivory", "Ebony", "Steel",
)
OBJECTS = (
    "Phantom", "Viper", "Raven", "Fox", "Wolf", "Hawk", "Dragon", "Tiger",
    "Falcon", "Panther", "Cobra", "Eagle", "Lynx", "Jaguar", "Leopard",
    "Shadow", "Specter", "Whisper", "Echo", "Cipher",
)


def generate_codename() -> str:
    """Return adjective + colour + object in PascalCase, e.g. "SwiftSilverPhantom"."""
    return (
        secrets.choice(ADJECTIVES) + secrets.choice(COLORS) + secrets.choice(OBJECTS)
    )
