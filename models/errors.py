"""
Engine Error Taxonomy

Initialization errors are fatal to graph use; not-found conditions are
ordinary return values and never raised.
"""

from typing import List, Optional


class ProgressionError(Exception):
    """Base class for all engine errors"""


class ContentValidationError(ProgressionError):
    """Content definitions are structurally invalid"""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = list(errors or [])


class CycleError(ContentValidationError):
    """Prerequisite relation contains a cycle"""

    def __init__(self, cycle: List[str]):
        self.cycle = list(cycle)
        path = " -> ".join(self.cycle)
        super().__init__(f"Circular prerequisite dependency detected: {path}", [path])


class GraphNotInitializedError(ProgressionError):
    """Content graph queried before it was built"""

    def __init__(self, message: str = "Content graph not initialized. Call build() or load_content() first."):
        super().__init__(message)
