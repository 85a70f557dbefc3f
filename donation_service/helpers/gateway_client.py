"""A module to support the redirect based payment gateway API operations.

The gateway is never told about local state: every call carries the local record ID as the gateway order ID and the
gateway echoes it back on the webhook postback as CustomOrderId. Calls are made once. A transport error or a response
that does not report success raises a GatewayError and the caller decides what to do with the local record.

    create_charge()         POST /v1/custom_token/             -> redirect URL for a one-time payment
    create_subscription()   POST /v1/subscription/create/      -> subscription, then a token for the first payment
    check_payment_status()  POST /v1.1/transaction/history/    -> completed or pending
    cancel_subscription()   POST /v1/subscription/cancel/
"""
import logging
from decimal import Decimal
from urllib.parse import urlencode

import requests
from flask_api import status

from donation_service.exceptions.exception_gateway import GatewayNotIsSuccessError
from donation_service.exceptions.exception_gateway import GatewayRequestError

GATEWAY_SUCCESS_CODES = ( 1, '1', 'SUCCESS' )

MAP_FREQUENCY = {
    'weekly': 'WEEKLY',
    'monthly': 'MONTHLY',
    'quarterly': 'QUARTERLY',
    'annually': 'YEARLY'
}

PAYMENT_COMPLETED = 'completed'
PAYMENT_PENDING = 'pending'


def format_gateway_amount( amount ):
    return '{:.2f}'.format( Decimal( str( amount ) ) )


class PaymentGatewayClient:
    """The payment gateway API, configured from the Flask app.config."""

    def __init__( self, config ):
        self.api_url = config[ 'GATEWAY_API_URL' ].rstrip( '/' )
        self.pay_url = config[ 'GATEWAY_PAY_URL' ]
        self.licence_key = config[ 'GATEWAY_LICENCE_KEY' ]
        self.site = config[ 'GATEWAY_SITE' ]
        self.currency = config.get( 'GATEWAY_CURRENCY', 'JMD' )
        self.timeout = config.get( 'GATEWAY_TIMEOUT_SECONDS', 30 )
        self.app_url = config[ 'APP_URL' ].rstrip( '/' )
        self.webhook_path = config.get( 'WEBHOOK_PATH', '/donation/webhook/gateway' )

    def create_charge( self, amount, reference_id, customer_email, customer_name, description, return_path ):
        """Create a checkout token for a one-time payment.

        :param amount: The amount to charge.
        :param str reference_id: The local donation ID, sent as the order ID.
        :param str customer_email: Shown on the gateway checkout page.
        :param str customer_name: Shown on the gateway checkout page.
        :param str description: The order description.
        :param str return_path: Path on the app the donor comes back to.
        :return: { 'redirect_url': ... }
        :raises GatewayError: The call failed or was declined.
        """

        logging.debug( 'Gateway charge for %s: %s %s', reference_id, customer_email, customer_name )
        token = self.create_token( amount, reference_id, description, return_path )
        return { 'redirect_url': self.build_redirect_url( token, reference_id ) }

    def create_subscription(
            self, amount, frequency, subscription_type, reference_id, customer_email, customer_name, description,
            return_path
    ):
        """Create a gateway subscription and a checkout token for its first payment.

        :param amount: The amount charged every period.
        :param str frequency: weekly, monthly, quarterly or annually.
        :param str subscription_type: Tag identifying what the subscription pays for.
        :param str reference_id: The local subscription ID, sent as the order ID.
        :param str customer_email: The cardholder email.
        :param str customer_name: The cardholder name.
        :param str description: The subscription description.
        :param str return_path: Path on the app the donor comes back to.
        :return: { 'redirect_url': ..., 'external_subscription_id': ... }
        :raises GatewayError: The call failed or was declined.
        """

        payload = {
            'site': self.site,
            'order_id': reference_id,
            'amount': format_gateway_amount( amount ),
            'currency': self.currency,
            'frequency': MAP_FREQUENCY.get( frequency, str( frequency ).upper() ),
            'subscription_type': subscription_type,
            'cardholder_email': customer_email,
            'cardholder_name': customer_name,
            'description': description,
            'postback_url': self.app_url + self.webhook_path,
            'return_url': self.app_url + return_path,
            'cancel_url': self.app_url + return_path
        }
        result = self.post( '/v1/subscription/create/', json=payload, headers=self.json_headers() )
        nested = result.get( 'result' ) if isinstance( result.get( 'result' ), dict ) else {}
        subscription_id = result.get( 'subscription_id' ) or nested.get( 'subscription_id' )
        if not subscription_id:
            raise GatewayNotIsSuccessError( result )
        logging.info( 'Gateway subscription %s created for %s.', subscription_id, reference_id )

        # The gateway echoes the subscription ID on the first payment postback only if the token carries it.
        token = self.create_token( amount, reference_id, description, return_path, subscription_id=subscription_id )
        return {
            'redirect_url': self.build_redirect_url( token, reference_id ),
            'external_subscription_id': str( subscription_id )
        }

    def check_payment_status( self, reference_id ):
        """Look up the payment for an order ID in the gateway transaction history.

        :param str reference_id: The local record ID sent as the order ID.
        :return: { 'status': completed | pending, 'transaction_number': ... }
        :raises GatewayError: The call failed.
        """

        result = self.post(
            '/v1.1/transaction/history/', json={ 'order_id': reference_id }, headers=self.json_headers()
        )
        nested = result.get( 'result' ) if isinstance( result.get( 'result' ), dict ) else {}
        transactions = result.get( 'transactions' ) or nested.get( 'transactions' ) or result.get( 'data' ) or []
        if not isinstance( transactions, list ):
            raise GatewayNotIsSuccessError( result )

        for transaction in transactions:
            if not isinstance( transaction, dict ):
                continue
            if reference_id not in ( transaction.get( 'order_id' ), transaction.get( 'CustomOrderId' ) ):
                continue
            response_code = transaction.get( 'ResponseCode', transaction.get( 'status' ) )
            return {
                'status': PAYMENT_COMPLETED if response_code in GATEWAY_SUCCESS_CODES else PAYMENT_PENDING,
                'transaction_number': transaction.get( 'TransactionNumber' ) or transaction.get( 'transaction_number' )
            }

        return { 'status': PAYMENT_PENDING, 'transaction_number': None }

    def cancel_subscription( self, external_subscription_id ):
        """Ask the gateway to stop billing a subscription. The cancellation is confirmed later by webhook.

        :param str external_subscription_id: The gateway subscription ID.
        :return: The gateway response.
        :raises GatewayError: The call failed or was declined.
        """

        result = self.post(
            '/v1/subscription/cancel/',
            json={ 'subscription_id': external_subscription_id },
            headers=self.json_headers()
        )
        if result.get( 'status' ) is not None and result.get( 'status' ) not in GATEWAY_SUCCESS_CODES:
            raise GatewayNotIsSuccessError( result )
        return result

    def create_token( self, amount, reference_id, description, return_path, subscription_id=None ):
        """Request the checkout token the payment page is opened with.

        :param subscription_id: The gateway subscription the payment is the first charge of, if any.
        """

        data = {
            'amount': format_gateway_amount( amount ),
            'currency': self.currency,
            'order_id': reference_id,
            'description': description,
            'post_back_url': self.app_url + self.webhook_path,
            'return_url': self.app_url + return_path,
            'cancel_url': self.app_url + return_path
        }
        if subscription_id:
            data[ 'subscription_id' ] = subscription_id
        headers = { 'licence_key': self.licence_key, 'site': self.site }
        result = self.post( '/v1/custom_token/', data=data, headers=headers )

        token_result = result.get( 'result' )
        if not isinstance( token_result, dict ):
            raise GatewayNotIsSuccessError( { 'message': str( token_result ) } if token_result else result )
        if token_result.get( 'status' ) not in GATEWAY_SUCCESS_CODES or not token_result.get( 'token' ):
            raise GatewayNotIsSuccessError( token_result or result )
        return token_result[ 'token' ]

    def build_redirect_url( self, token, reference_id ):
        return '{}?{}'.format( self.pay_url, urlencode( { 'token': token, 'order_id': reference_id } ) )

    def json_headers( self ):
        return { 'content-type': 'application/json', 'Licence': self.licence_key, 'site': self.site }

    def post( self, path, **kwargs ):
        """A single POST to the gateway API.

        :param str path: The API path.
        :param kwargs: Passed to requests.post().
        :return: The decoded JSON body.
        :raises GatewayRequestError: Connection failure, timeout or undecodable body.
        :raises GatewayNotIsSuccessError: HTTP status other than 2xx.
        """

        url = self.api_url + path
        try:
            response = requests.post( url, timeout=self.timeout, **kwargs )
        except requests.exceptions.RequestException as error:
            logging.error( 'Gateway request to %s failed: %s', url, error )
            raise GatewayRequestError( { 'url': url, 'error': str( error ) } )

        if not status.is_success( response.status_code ):
            logging.error( 'Gateway request to %s returned HTTP %s.', url, response.status_code )
            raise GatewayNotIsSuccessError( { 'url': url, 'status_code': response.status_code } )

        try:
            body = response.json()
        except ValueError:
            raise GatewayRequestError( { 'url': url, 'error': 'Response body is not JSON.' } )
        return body if isinstance( body, dict ) else {}
