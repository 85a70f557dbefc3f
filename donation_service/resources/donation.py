"""Resources entry point for the donation views."""
# pylint: disable=too-few-public-methods
from flask import jsonify
from flask_api import status
from flask_jwt_extended import jwt_required
from flask_restful import Resource

from donation_service.controllers.donation import get_cause_donors
from donation_service.controllers.donation import get_donation
from donation_service.controllers.donation import get_user_donations
from donation_service.helpers.identity import get_current_user_id


class DonationById( Resource ):
    """Flask-RESTful resource endpoint for the public view of a donation."""

    def get( self, donation_id ):
        """Endpoint to get a donation by the ID returned when it was initiated."""

        response = jsonify( get_donation( donation_id ) )
        response.status_code = status.HTTP_200_OK
        return response


class DonationsByUser( Resource ):
    """Flask-RESTful resource endpoint for the donation history of the signed-in user."""

    @jwt_required()
    def get( self ):
        """Endpoint to get the caller's donations, newest first."""

        response = jsonify( get_user_donations( get_current_user_id() ) )
        response.status_code = status.HTTP_200_OK
        return response


class DonorsByCause( Resource ):
    """Flask-RESTful resource endpoint for the donor wall of a cause."""

    def get( self, cause_id ):
        """Endpoint to get completed donations for a cause."""

        response = jsonify( get_cause_donors( cause_id ) )
        response.status_code = status.HTTP_200_OK
        return response
