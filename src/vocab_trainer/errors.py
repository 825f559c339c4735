"""Exceptions raised by the scheduler, the quiz session and the card store."""


class VocabTrainerError(Exception):
    """Base class for all trainer errors."""


class InvalidQuality(VocabTrainerError, ValueError):
    """A rating outside the 1-5 quality scale."""

    def __init__(self, quality):
        self.quality = quality
        super().__init__(f"Quality must be an integer from 1 to 5, got {quality!r}")


class CardNotFound(VocabTrainerError, KeyError):
    """A card id that is not in the working set or the store."""

    def __init__(self, card_id):
        self.card_id = card_id
        super().__init__(card_id)

    def __str__(self) -> str:
        return f"Card not found: {self.card_id}"


class DuplicateCard(VocabTrainerError, ValueError):
    """A card with the same front or back already exists."""


class SessionStateError(VocabTrainerError):
    """An action that the quiz session does not accept in its current state."""


class PersistenceFailure(VocabTrainerError):
    """The card store rejected or failed a schedule write."""

    def __init__(self, card_id, cause: Exception | None = None):
        self.card_id = card_id
        self.cause = cause
        message = f"Could not persist schedule for card {card_id}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)
