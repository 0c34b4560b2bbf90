"""
Custom exceptions for the foosball bot with user-friendly error messages.
"""

class FoosbotException(Exception):
    """Base exception for foosbot errors."""
    def __init__(self, message: str, user_message: str = None):
        super().__init__(message)
        self.user_message = user_message or message

class ValidationError(FoosbotException):
    """Raised when a match submission or other input is malformed."""
    def __init__(self, reason: str):
        super().__init__(
            f"Validation failed: {reason}",
            f"❌ {reason}"
        )
        self.reason = reason

class PlayerNotFoundError(FoosbotException):
    """Raised when a referenced player is not registered."""
    def __init__(self, identifier):
        super().__init__(
            f"Player '{identifier}' not found",
            f"❌ Player **{identifier}** not found. Use `/register` first!"
        )
        self.identifier = identifier

class PlayerAlreadyRegisteredError(FoosbotException):
    """Raised when registering a handle that already exists."""
    def __init__(self, username: str):
        super().__init__(
            f"Player '{username}' already registered",
            f"✅ You're already registered as **{username}**!"
        )
        self.username = username

class HandleClaimedError(FoosbotException):
    """Raised when a handle is already bound to a different chat account."""
    def __init__(self, username: str):
        super().__init__(
            f"Player '{username}' is linked to another account",
            f"❌ **{username}** is already linked to another Discord account. Ask an admin to re-link it."
        )
        self.username = username

class ConcurrentUpdateError(FoosbotException):
    """Raised when a write lost a race with another writer and was rolled back."""
    def __init__(self, details: str = None):
        super().__init__(
            f"Concurrent update rejected: {details}",
            "⚠️ Another update for these players was being saved. Nothing was recorded, please submit again."
        )

class NotificationDeliveryError(FoosbotException):
    """Raised when a single notification could not be delivered."""
    def __init__(self, chat_id, details: str = None):
        super().__init__(
            f"Failed to deliver notification to {chat_id}: {details}",
            "❌ Could not deliver notification."
        )
        self.chat_id = chat_id

class AggregationError(FoosbotException):
    """Raised when season statistics could not be recomputed."""
    def __init__(self, season: str, details: str = None):
        super().__init__(
            f"Season aggregation failed for {season}: {details}",
            "⚠️ Match saved, but season stats could not be updated. An admin can rebuild them."
        )
        self.season = season
