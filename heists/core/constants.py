"""Collection names and fixed limits (schema-in-code).

Firestore has no DDL; collections appear on first write. These names are
the single source of truth for where heists and user profiles live.
"""

COLLECTION_HEISTS = "heists"
COLLECTION_USERS = "users"

# Form limits for new heists.
HEIST_TITLE_MAX_LENGTH = 20
HEIST_DESCRIPTION_MAX_LENGTH = 200

# Every heist is due this long after submission.
HEIST_DURATION_HOURS = 48

LOAD_HEISTS_ERROR_MESSAGE = "Failed to load heists. Please try again."
CREATE_HEIST_ERROR_MESSAGE = "Failed to create heist. Please try again."
