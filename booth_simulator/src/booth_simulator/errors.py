"""
Simulator Errors

Only configuration loading and calls against finished sessions surface to
callers. Provider failures are raised by chat/enrichment providers and always
caught inside the conversation engine.
"""


class SimulatorError(Exception):
    """Base class for booth simulator errors."""


class ConfigurationError(SimulatorError):
    """Simulator configuration could not be read or failed validation."""


class SessionInactiveError(SimulatorError):
    """A turn or completion was attempted on a session that already ended."""

    def __init__(self, session_id: str):
        super().__init__(f"Session {session_id} is no longer active")
        self.session_id = session_id


class ProviderError(SimulatorError):
    """A generative collaborator failed or returned nothing usable."""
