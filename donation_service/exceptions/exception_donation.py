"""Exception handlers for the donor-facing orchestration errors."""
# pylint: disable=too-few-public-methods


class DonationError( Exception ):
    """Base class for the errors surfaced to a donor when initiating a donation."""


class ValidationError( DonationError ):
    """Donor input failed validation: carries a reason code so the caller can render a targeted message."""

    def __init__( self, reason, message ):
        super().__init__( message )
        self.reason = reason
        self.message = message


class AuthenticationRequiredError( DonationError ):
    """A recurring donation was requested by an unauthenticated caller."""

    def __init__( self ):
        super().__init__()
        self.reason = 'authentication_required'
        self.message = 'You need to be signed in to set up recurring donations.'


class SubscriptionNotCancellableError( DonationError ):
    """A cancellation was requested for a subscription that is not active or past due."""

    def __init__( self, state ):
        super().__init__()
        self.reason = 'subscription_not_cancellable'
        self.message = 'A subscription in state {} cannot be cancelled.'.format( state )
