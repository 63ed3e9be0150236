class Error(Exception):
    """Base class for exceptions in this module."""

    pass


class NotFoundError(Error):
    """Raised when a voter, category or collaborator id does not resolve."""

    def __init__(self, entity: str, key: object) -> None:
        self.entity = entity
        self.key = key

    def __str__(self) -> str:
        return f"{self.entity} `{self.key}` was not found."


class NotEligibleError(Error):
    """
    Raised when a collaborator cannot be nominated in a category.

    A collaborator linked to at least one category may only be nominated in
    the categories it is linked to.
    """

    def __init__(self, category_id: int, collaborator_id: int) -> None:
        self.category_id = category_id
        self.collaborator_id = collaborator_id

    def __str__(self) -> str:
        return (
            f"Collaborator {self.collaborator_id} is not eligible "
            f"in category {self.category_id}."
        )


class WriteFailedError(Error):
    """Raised when the store rejects a write. The previous state is kept."""

    def __init__(self, operation: str) -> None:
        self.operation = operation

    def __str__(self) -> str:
        return f"Could not {self.operation}. Nothing was changed, try again later."


class EmptyRosterError(Error):
    """Raised when the lottery draw has nobody to draw from."""

    def __str__(self) -> str:
        return "The lottery roster is empty."


class VotingClosedError(Error):
    """Raised when a vote is cast while voting is closed."""

    def __str__(self) -> str:
        return "Voting is currently closed."
