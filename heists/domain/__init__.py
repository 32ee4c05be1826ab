"""Domain layer: heist entities, enums, value objects, expiry policy, exceptions."""
