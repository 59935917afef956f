def external_error_message(exc: Exception) -> str:
    """Message reported by the Supabase SDK for a failed call, falling back to str(exc)."""
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(exc) or exc.__class__.__name__


class RedirectRequired(Exception):
    """Raised by the route guard; turned into a redirect response by the app."""

    def __init__(self, location: str):
        super().__init__(location)
        self.location = location
