"""ID generators for documents created client-side."""

from cuid2 import cuid_wrapper

cuid_generator = cuid_wrapper()


def generate_document_id() -> str:
    """Generate a collision-resistant document ID (CUID2).

    Firestore document IDs are chosen by the writer; CUID2 values contain no
    '/' and are safe to use as the last path segment.

    Returns:
        A new CUID string.
    """
    result = cuid_generator()
    if not isinstance(result, str):
        raise TypeError(
            f"Expected str from cuid_generator, got {type(result).__name__}"
        )
    return result
