"""Exception taxonomy shared by the store, merger, pipeline and collaborators."""


class AppFlowError(Exception):
    """Base class for every recoverable appflow failure."""
    pass


class ValidationError(AppFlowError):
    """A requested mutation would violate a graph or feature invariant.

    Raised before any state is touched.
    """
    pass


class NotFoundError(AppFlowError):
    """An operation targeted an id that is not present."""
    pass


class CollaboratorError(AppFlowError):
    """The AI collaborator call failed (network, auth, malformed JSON)."""
    pass


class TransitionError(AppFlowError):
    """A stage transition precondition failed or navigation was illegal."""
    pass


class PipelineBusyError(AppFlowError):
    """A second AI request was issued while one is still outstanding."""
    pass
