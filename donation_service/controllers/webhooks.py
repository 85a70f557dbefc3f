"""Controllers for Flask-RESTful resources: handle the business logic for the payment gateway webhook."""
import hashlib
import hmac

from flask import current_app

from donation_service.exceptions.exception_gateway import GatewayInvalidSignatureError
from donation_service.helpers.service_factory import build_reconciler


def gateway_webhook( payload, raw_body, signature ):
    """Verify the webhook and hand the payload to the reconciler.

    :param dict payload: The posted form or JSON body.
    :param bytes raw_body: The body as received, for the signature.
    :param str signature: The X-Webhook-Signature header.
    :return: The reconciler acknowledgement.
    :raises GatewayInvalidSignatureError: A webhook secret is configured and the signature does not match.
    """

    verify_webhook_signature( raw_body, signature, current_app.config.get( 'WEBHOOK_SECRET' ) )
    return build_reconciler().handle_gateway_event( payload )


def verify_webhook_signature( raw_body, signature, secret ):
    """The signature is the hex HMAC-SHA256 of the raw body. Without a secret every webhook is accepted.

    :param bytes raw_body: The body as received.
    :param str signature: The header value.
    :param str secret: The shared secret.
    :return: True
    """

    if not secret:
        return True

    expected = hmac.new( str( secret ).encode( 'utf-8' ), raw_body or b'', hashlib.sha256 ).hexdigest()
    if not signature or not hmac.compare_digest( expected, signature.strip().lower() ):
        raise GatewayInvalidSignatureError()
    return True
