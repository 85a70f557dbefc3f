"""Resources entry point to test the health of the application."""
# pylint: disable=too-few-public-methods
from flask import jsonify
from flask_api import status
from flask_restful import Resource

from donation_service.controllers.app_health import heartbeat


class Heartbeat( Resource ):
    """Flask-RESTful resource endpoint for the load balancer health check."""

    def get( self ):
        """Endpoint to see if the application is running and its database answers."""

        if heartbeat():
            response = jsonify( { 'status': 'ok' } )
            response.status_code = status.HTTP_200_OK
            return response

        response = jsonify( { 'status': 'database unavailable' } )
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return response
