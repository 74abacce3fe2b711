"""Error taxonomy for the retrieval pipeline.

Validation errors are raised before any external call. Retrieval errors
carry the name of the stage that failed; the pipeline escalates them to
``FatalRetrievalError`` when no result can be computed. Degradable failures
(reranking, cache) never surface as exceptions.
"""


class HybridRagError(Exception):
    """Base class for all pipeline errors."""


class ValidationError(HybridRagError):
    """Malformed request rejected before any external call."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class RetrievalError(HybridRagError):
    """A single retrieval stage failed."""

    def __init__(self, stage: str, cause: BaseException | str | None = None):
        self.stage = stage
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"{stage} failed{detail}")


class EmbeddingError(RetrievalError):
    """Query embedding could not be produced."""

    def __init__(self, cause: BaseException | str | None = None):
        super().__init__("embed", cause)


class FatalRetrievalError(HybridRagError):
    """No results are computable for the request."""

    def __init__(self, stage: str, cause: BaseException | str | None = None):
        self.stage = stage
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Retrieval failed at stage '{stage}'{detail}")
