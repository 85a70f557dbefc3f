"""Exception handlers for the payment gateway objects."""
# pylint: disable=too-few-public-methods


class GatewayError( Exception ):
    """The checkout, subscription or status call to the payment gateway failed."""

    def __init__( self, message='The payment gateway request failed.', details=None ):
        super().__init__( message )
        self.reason = 'gateway_error'
        self.message = message
        self.details = details


class GatewayRequestError( GatewayError ):
    """Exception to handle transport errors: connection failures and timeouts."""

    def __init__( self, details=None ):
        super().__init__( 'The payment gateway could not be reached.', details )


class GatewayNotIsSuccessError( GatewayError ):
    """Exception to handle a gateway response that did not report success."""

    def __init__( self, details=None ):
        message = 'The payment gateway declined the request.'
        if isinstance( details, dict ) and details.get( 'message' ):
            message = str( details[ 'message' ] )
        super().__init__( message, details )


class GatewayInvalidSignatureError( Exception ):
    """Exception to handle a webhook whose signature does not match the shared secret."""

    def __init__( self ):
        super().__init__()
        self.message = 'Gateway webhook invalid signature.'
