"""Resources entry point for the recurring donations of the signed-in user."""
# pylint: disable=too-few-public-methods
from flask import jsonify
from flask_api import status
from flask_jwt_extended import jwt_required
from flask_restful import Resource

from donation_service.controllers.subscription import cancel_subscription
from donation_service.controllers.subscription import get_subscription_charges
from donation_service.controllers.subscription import get_user_subscriptions
from donation_service.helpers.identity import get_current_user_id


class SubscriptionsByUser( Resource ):
    """Flask-RESTful resource endpoint for the caller's subscriptions."""

    @jwt_required()
    def get( self ):
        """Endpoint to get the caller's subscriptions, newest first."""

        response = jsonify( get_user_subscriptions( get_current_user_id() ) )
        response.status_code = status.HTTP_200_OK
        return response


class SubscriptionCharges( Resource ):
    """Flask-RESTful resource endpoint for the charge history of a subscription."""

    @jwt_required()
    def get( self, subscription_id ):
        """Endpoint to get the charges of one of the caller's subscriptions."""

        response = jsonify( get_subscription_charges( subscription_id, get_current_user_id() ) )
        response.status_code = status.HTTP_200_OK
        return response


class SubscriptionCancel( Resource ):
    """Flask-RESTful resource endpoint to request the cancellation of a subscription."""

    @jwt_required()
    def post( self, subscription_id ):
        """Endpoint to ask the gateway to cancel: the subscription is cancelled when the gateway confirms it."""

        response = jsonify( cancel_subscription( subscription_id, get_current_user_id() ) )
        response.status_code = status.HTTP_202_ACCEPTED
        return response
