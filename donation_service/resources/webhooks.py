"""Resources entry point to handle the payment gateway webhooks."""
# pylint: disable=too-few-public-methods
from flask import jsonify
from flask import request
from flask_api import status
from flask_restful import Resource

from donation_service.controllers.webhooks import gateway_webhook


class GatewayWebhook( Resource ):
    """Flask-RESTful resource endpoint for the gateway postback."""

    def post( self ):
        """Endpoint for the gateway to post payment and subscription events as a form or as JSON."""

        # Read the raw body first: the form is then parsed from the cached data.
        raw_body = request.get_data( cache=True )
        if request.is_json:
            payload = request.get_json( silent=True )
        else:
            payload = request.form.to_dict()

        response = jsonify( gateway_webhook( payload, raw_body, request.headers.get( 'X-Webhook-Signature' ) ) )
        response.status_code = status.HTTP_200_OK
        return response
