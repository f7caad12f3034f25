"""Exceptions raised by the account services."""


class AccountError(ValueError):
    """A request the account services refuse; the message is shown to the user."""


class NotFoundError(AccountError):
    """The entity does not exist or does not belong to the requesting user."""
