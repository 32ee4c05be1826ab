"""Heists: real-time team task tracking on top of Firestore and Firebase Auth."""

__version__ = "0.1.0"
