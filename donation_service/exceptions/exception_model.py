"""Exception handlers for the models."""
# pylint: disable=too-few-public-methods


class ModelError( Exception ):
    """Base class for some custom exceptions for the models."""


class ModelDonationNotFoundError( ModelError ):
    """Exception for a donation lookup with no result."""

    def __init__( self ):
        super().__init__()
        self.message = 'The donation was not found.'


class ModelSubscriptionNotFoundError( ModelError ):
    """Exception for a subscription lookup with no result, or one the caller does not own."""

    def __init__( self ):
        super().__init__()
        self.message = 'The subscription was not found.'


class ModelCauseNotFoundError( ModelError ):
    """Exception for a cause lookup with no result."""

    def __init__( self ):
        super().__init__()
        self.message = 'The cause was not found.'


class ModelImmutableFieldError( ModelError ):
    """Exception raised when a transition tries to change a column that is fixed at creation."""

    def __init__( self, fields ):
        super().__init__()
        self.message = 'Fields are immutable after creation: {}.'.format( ', '.join( sorted( fields ) ) )
