"""The Flask application factory for the Donations API service."""
import logging
from logging.config import dictConfig
import os

from flask import Flask
from flask import jsonify
from flask_restful import Api
from marshmallow.exceptions import ValidationError as MarshmallowValidationError
from sqlalchemy.exc import SQLAlchemyError

from donation_service.configuration.config_loader import ConfigLoader
from donation_service.exceptions.exception_donation import AuthenticationRequiredError
from donation_service.exceptions.exception_donation import SubscriptionNotCancellableError
from donation_service.exceptions.exception_donation import ValidationError
from donation_service.exceptions.exception_gateway import GatewayError
from donation_service.exceptions.exception_gateway import GatewayInvalidSignatureError
from donation_service.exceptions.exception_model import ModelCauseNotFoundError
from donation_service.exceptions.exception_model import ModelDonationNotFoundError
from donation_service.exceptions.exception_model import ModelImmutableFieldError
from donation_service.exceptions.exception_model import ModelSubscriptionNotFoundError
from donation_service.flask_essentials import database
from donation_service.flask_essentials import jwt
from donation_service.flask_essentials import redis_queue
from donation_service.logging_configuration import get_logging_configuration
from donation_service.resources.app_health import Heartbeat
from donation_service.resources.donate import Donation
from donation_service.resources.donation import DonationById
from donation_service.resources.donation import DonationsByUser
from donation_service.resources.donation import DonorsByCause
from donation_service.resources.subscription import SubscriptionCancel
from donation_service.resources.subscription import SubscriptionCharges
from donation_service.resources.subscription import SubscriptionsByUser
from donation_service.resources.webhooks import GatewayWebhook

CONFIGURATION_FILE = os.path.join( os.path.dirname( __file__ ), 'configuration', 'conf.yml' )


def create_app( app_config_env=None ):
    """Create the application.

    The configuration is read from configuration/conf.yml. The DEFAULT section is loaded first, then the section
    named by app_config_env, and finally any environment variable that matches a key, plain or prefixed with the
    environment name, e.g. PROD_GATEWAY_LICENCE_KEY.

    :param app_config_env: DEFAULT, DEV, TEST or PROD; falls back to the APP_ENV environment variable.
    :return: The Flask application.
    """

    # Set the ENV variable in the Dockerfile. If we can't find a value set the app_config_env to DEFAULT.
    if not app_config_env:
        app_config_env = os.environ.get( 'APP_ENV', 'DEFAULT' )

    app = Flask( 'donation_api' )

    configuration = ConfigLoader()
    configuration.update_from_yaml_file( CONFIGURATION_FILE, app_config_env )
    configuration.update_from_env_variables( app_config_env )

    app.config.update( configuration )
    app.config.update( { 'ENV': app_config_env } )

    wsgi_log_level = 'WARNING'
    gunicorn_log_level = 'WARNING'
    # Set the level of the root logger.
    if app.config.get( 'WSGI_LOG_LEVEL' ):
        wsgi_log_level = app.config[ 'WSGI_LOG_LEVEL' ]
    if app.config.get( 'GUNICORN_LOG_LEVEL' ):
        gunicorn_log_level = app.config[ 'GUNICORN_LOG_LEVEL' ]

    # If running gunicorn add gunicorn.error to handlers.
    gunicorn = __name__ != '__main__' and 'gunicorn' in os.environ.get( 'SERVER_SOFTWARE', '' )

    dictConfig( get_logging_configuration(
        wsgi_log_level, gunicorn_log_level, gunicorn, app.config.get( 'ERROR_LOG_FILE', 'errors.log' )
    ) )
    logging.root.log( logging.root.level, '***** Logging is enabled for this level.' )
    logging.root.log( logging.root.level, '***** app.config[ ENV ]: %s', app_config_env )

    database.init_app( app )

    redis_queue.init_app( app )
    jwt.init_app( app )
    # Needed for the JWT and application errors to reach the handlers below instead of Flask-RESTful's 500.
    app.config.update( PROPAGATE_EXCEPTIONS=True )

    api = Api( app )

    api.add_resource( Donation, '/donation/donate' )
    api.add_resource( GatewayWebhook, app.config.get( 'WEBHOOK_PATH', '/donation/webhook/gateway' ) )
    # Register the user history ahead of the donation ID route.
    api.add_resource( DonationsByUser, '/donation/donations/user' )
    api.add_resource( DonationById, '/donation/donations/<string:donation_id>' )
    api.add_resource( DonorsByCause, '/donation/causes/<string:cause_id>/donors' )
    api.add_resource( SubscriptionsByUser, '/donation/subscriptions/user' )
    api.add_resource( SubscriptionCharges, '/donation/subscriptions/<string:subscription_id>/charges' )
    api.add_resource( SubscriptionCancel, '/donation/subscriptions/<string:subscription_id>/cancel' )
    api.add_resource( Heartbeat, '/donation/heartbeat' )

    @app.after_request
    def after_request( response ):  # pylint: disable=unused-variable
        """A handler for defining response headers.

        :param response: an HTTP response object
        :return:
        """

        response.headers.add( 'Access-Control-Allow-Origin', '*' )
        response.headers.add( 'Access-Control-Allow-Headers', 'Content-Type, Authorization' )
        response.headers.add( 'Access-Control-Allow-Methods', 'GET, POST, OPTIONS' )
        return response

    @app.errorhandler( AuthenticationRequiredError )
    @app.errorhandler( GatewayInvalidSignatureError )
    def handle_401( error ):  # pylint: disable=unused-variable
        """HTTP status 401 ( unauthorized ) error handler.

        :param error: Error message raised by exception.
        :return:
        """

        response = jsonify( handle_error_message( error ) )
        response.status_code = 401
        return response

    @app.errorhandler( ModelCauseNotFoundError )
    @app.errorhandler( ModelDonationNotFoundError )
    @app.errorhandler( ModelSubscriptionNotFoundError )
    def handle_404( error ):  # pylint: disable=unused-variable
        """HTTP status 404 ( not found ) error handler.

        :param error: Error message raised by exception.
        :return:
        """

        response = jsonify( handle_error_message( error ) )
        response.status_code = 404
        return response

    @app.errorhandler( SubscriptionNotCancellableError )
    def handle_409( error ):  # pylint: disable=unused-variable
        """HTTP status 409 ( conflict ) error handler.

        :param error: Error message raised by exception.
        :return:
        """

        response = jsonify( handle_error_message( error ) )
        response.status_code = 409
        return response

    @app.errorhandler( ValidationError )
    @app.errorhandler( MarshmallowValidationError )
    def handle_422( error ):  # pylint: disable=unused-variable
        """HTTP status 422 ( unprocessable entity ) error handler.

        :param error: Error message raised by exception.
        :return:
        """

        response = jsonify( handle_error_message( error ) )
        response.status_code = 422
        return response

    @app.errorhandler( ModelImmutableFieldError )
    @app.errorhandler( SQLAlchemyError )
    def handle_500( error ):  # pylint: disable=unused-variable
        """HTTP status 500 ( internal server error ) error handler.

        :param error: Error message raised by exception.
        :return:
        """

        response = jsonify( handle_error_message( error ) )
        response.status_code = 500
        return response

    @app.errorhandler( GatewayError )
    def handle_502( error ):  # pylint: disable=unused-variable
        """HTTP status 502 ( bad gateway ) error handler: the payment gateway failed, nothing is retried.

        :param error: Error message raised by exception.
        :return:
        """

        response = jsonify( handle_error_message( error ) )
        response.status_code = 502
        return response

    def handle_error_message( error ):
        """Used by error handlers for handling error and error.message.

        Donor facing errors carry a reason code so the front-end can show a targeted message.

        :param error: The error raised by the exception.
        :return: return the error message.
        """

        if isinstance( error, MarshmallowValidationError ):
            logging.warning( error.messages )
            return { 'reason': 'invalid_request', 'message': error.messages }
        if hasattr( error, 'reason' ) and hasattr( error, 'message' ):
            logging.warning( '%s: %s', error.reason, error.message )
            return { 'reason': error.reason, 'message': error.message }
        if hasattr( error, 'message' ):
            logging.exception( error.message )
            return error.message
        logging.exception( error )
        return str( error )

    return app


donation_app = create_app()  # pylint: disable=invalid-name

if __name__ != '__main__':
    gunicorn_logger = logging.getLogger( 'gunicorn.error' )  # pylint: disable=invalid-name
    donation_app.logger.handlers = gunicorn_logger.handlers
    donation_app.logger.setLevel( gunicorn_logger.level )
