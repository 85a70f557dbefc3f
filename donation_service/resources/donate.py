"""Resources entry point to initiate a donation."""
# pylint: disable=too-few-public-methods
from flask import jsonify
from flask import request
from flask_api import status
from flask_jwt_extended import jwt_required
from flask_restful import Resource

from donation_service.controllers.donate import post_donation


class Donation( Resource ):
    """Flask-RESTful resource endpoint for a one-time or recurring donation."""

    # The JWT is optional: anonymous donors give one-time donations, recurring donations need a signed-in donor.
    @jwt_required( optional=True )
    def post( self ):
        """Endpoint to initiate a donation and get the gateway redirect URL."""

        response = jsonify( post_donation( request.get_json( silent=True ) ) )
        response.status_code = status.HTTP_200_OK
        return response
