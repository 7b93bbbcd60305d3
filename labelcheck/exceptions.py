"""
Exception classes for the label compliance session engine.
"""


class LabelCheckError(Exception):
    """Base exception for all labelcheck errors."""

    pass


class UnknownReferenceError(LabelCheckError):
    """An analysis or session id that the store does not recognize."""

    def __init__(self, resource: str, resource_id: str):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} with id '{resource_id}' not found")


class InvalidCategoryError(LabelCheckError):
    """A category selection outside the closed product category set."""

    pass


class DisambiguationStateError(LabelCheckError):
    """An illegal transition in the category disambiguation state machine."""

    pass


class SessionComparisonError(LabelCheckError):
    """A session has no revised upload to compare against."""

    pass
