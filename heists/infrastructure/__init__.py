"""Infrastructure adapters (Firestore and Firebase Auth over REST)."""
