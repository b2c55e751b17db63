from __future__ import annotations


class StateValidationError(ValueError):
    """A request or client-held state is malformed or structurally impossible."""


class AuthenticationError(ValueError):
    """A non-initial state arrived without a matching integrity tag."""


class CollaboratorError(RuntimeError):
    pass


class IntentRecognitionError(CollaboratorError):
    pass


class NarrativeGenerationError(CollaboratorError):
    pass


class UnknownIntentError(LookupError):
    """The engine has no handler for an action. Absorbed as a normal outcome."""


class InternalError(RuntimeError):
    pass
