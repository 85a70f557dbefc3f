"""The module tests the HTTP endpoints: donate, the donation and subscription views and the heartbeat."""
import json
import unittest
from decimal import Decimal
from http import HTTPStatus

import mock
from flask_api import status
from flask_jwt_extended import create_access_token

from donation_service.app import create_app
from donation_service.flask_essentials import database
from donation_service.models.donation import DonationModel
from donation_service.models.subscription_charge import SubscriptionChargeModel
from tests.helpers.default_dictionaries import CAUSE_ID
from tests.helpers.default_dictionaries import CAUSE_WITH_MINIMUM_ID
from tests.helpers.default_dictionaries import EXTERNAL_SUBSCRIPTION_ID
from tests.helpers.default_dictionaries import get_donation_request_dict
from tests.helpers.default_dictionaries import USER_EMAIL
from tests.helpers.default_dictionaries import USER_ID
from tests.helpers.mock_gateway_objects import mock_gateway_post
from tests.helpers.mock_gateway_objects import mock_gateway_post_timeout
from tests.helpers.model_helpers import create_causes
from tests.helpers.model_helpers import create_donation
from tests.helpers.model_helpers import create_subscription

GATEWAY_POST = 'donation_service.helpers.gateway_client.requests.post'
SUBSCRIPTION_ID = '2d4f6a8c-1b3e-4d5f-9a7c-8e6d4c2b0a07'


class ApiEndpointsTestCase( unittest.TestCase ):
    """This test suite is designed to verify the HTTP status codes and bodies of the API endpoints.

    python -m unittest -v tests.test_api_endpoints.ApiEndpointsTestCase
    """

    def setUp( self ):
        self.app = create_app( 'TEST' )
        self.app.testing = True
        self.test_client = self.app.test_client()
        with self.app.app_context():
            database.drop_all()
            database.create_all()
            create_causes()
            self.headers = {
                'Authorization': 'Bearer {}'.format(
                    create_access_token( identity=USER_ID, additional_claims={ 'email': USER_EMAIL } )
                )
            }
            self.other_headers = {
                'Authorization': 'Bearer {}'.format( create_access_token( identity='user-2' ) )
            }

    def tearDown( self ):
        with self.app.app_context():
            database.session.remove()
            database.drop_all()

    @staticmethod
    def decode( response ):
        return json.loads( response.data.decode( 'utf-8' ) )

    def test_heartbeat( self ):
        response = self.test_client.get( '/donation/heartbeat' )

        self.assertEqual( response.status_code, status.HTTP_200_OK )
        self.assertEqual( self.decode( response ), { 'status': 'ok' } )
        self.assertEqual( response.headers[ 'Access-Control-Allow-Origin' ], '*' )

    @mock.patch( GATEWAY_POST, side_effect=mock_gateway_post )
    def test_donate_anonymous_caller( self, mock_post ):  # pylint: disable=unused-argument
        response = self.test_client.post( '/donation/donate', json=get_donation_request_dict() )

        self.assertEqual( response.status_code, status.HTTP_200_OK )
        body = self.decode( response )
        self.assertIn( 'redirect_url', body )
        with self.app.app_context():
            donation = DonationModel.query.filter_by( id=body[ 'donation_id' ] ).one()
            self.assertEqual( donation.state, 'payment_initiated' )
            self.assertIsNone( donation.user_id )

    @mock.patch( GATEWAY_POST, side_effect=mock_gateway_post )
    def test_donate_signed_in_caller( self, mock_post ):  # pylint: disable=unused-argument
        response = self.test_client.post(
            '/donation/donate', json=get_donation_request_dict(), headers=self.headers
        )

        self.assertEqual( response.status_code, status.HTTP_200_OK )
        with self.app.app_context():
            donation = DonationModel.query.filter_by( id=self.decode( response )[ 'donation_id' ] ).one()
            self.assertEqual( donation.user_id, USER_ID )

    @mock.patch( GATEWAY_POST, side_effect=mock_gateway_post )
    def test_donate_invalid_email( self, mock_post ):
        response = self.test_client.post(
            '/donation/donate', json=get_donation_request_dict( { 'donor_email': 'not-an-email' } )
        )

        self.assertEqual( response.status_code, HTTPStatus.UNPROCESSABLE_ENTITY )
        self.assertEqual( self.decode( response ), { 'reason': 'invalid_email', 'message': 'invalid email' } )
        mock_post.assert_not_called()

    @mock.patch( GATEWAY_POST, side_effect=mock_gateway_post )
    def test_donate_below_cause_minimum( self, mock_post ):  # pylint: disable=unused-argument
        response = self.test_client.post(
            '/donation/donate', json=get_donation_request_dict( { 'cause_id': CAUSE_WITH_MINIMUM_ID, 'amount': 500 } )
        )

        self.assertEqual( response.status_code, HTTPStatus.UNPROCESSABLE_ENTITY )
        self.assertEqual( self.decode( response )[ 'message' ], 'minimum donation for this cause is 1000' )

    @mock.patch( GATEWAY_POST, side_effect=mock_gateway_post )
    def test_donate_recurring_requires_token( self, mock_post ):
        response = self.test_client.post(
            '/donation/donate', json=get_donation_request_dict( { 'frequency': 'monthly' } )
        )

        self.assertEqual( response.status_code, status.HTTP_401_UNAUTHORIZED )
        mock_post.assert_not_called()

    @mock.patch( GATEWAY_POST, side_effect=mock_gateway_post )
    def test_donate_recurring( self, mock_post ):  # pylint: disable=unused-argument
        response = self.test_client.post(
            '/donation/donate', json=get_donation_request_dict( { 'frequency': 'monthly' } ), headers=self.headers
        )

        self.assertEqual( response.status_code, status.HTTP_200_OK )
        body = self.decode( response )
        self.assertIn( 'subscription_id', body )
        self.assertIn( 'redirect_url', body )

    @mock.patch( GATEWAY_POST, side_effect=mock_gateway_post_timeout )
    def test_donate_gateway_unavailable( self, mock_post ):  # pylint: disable=unused-argument
        response = self.test_client.post( '/donation/donate', json=get_donation_request_dict() )

        self.assertEqual( response.status_code, status.HTTP_502_BAD_GATEWAY )
        self.assertEqual( self.decode( response )[ 'reason' ], 'gateway_error' )
        with self.app.app_context():
            self.assertEqual( DonationModel.query.one().state, 'failed' )

    def test_get_donation( self ):
        with self.app.app_context():
            donation_id = create_donation( { 'user_id': USER_ID, 'message': 'For the kitchen.' } )

        response = self.test_client.get( '/donation/donations/{}'.format( donation_id ) )

        self.assertEqual( response.status_code, status.HTTP_200_OK )
        body = self.decode( response )
        self.assertEqual( body[ 'donor_name' ], 'Jane Donor' )
        self.assertEqual( body[ 'amount' ], '2500.00' )
        self.assertNotIn( 'user_id', body )

    def test_get_anonymous_donation( self ):
        with self.app.app_context():
            donation_id = create_donation( { 'is_anonymous': True } )

        body = self.decode( self.test_client.get( '/donation/donations/{}'.format( donation_id ) ) )

        self.assertTrue( body[ 'is_anonymous' ] )
        self.assertNotIn( 'donor_name', body )
        self.assertNotIn( 'donor_email', body )

    def test_get_unknown_donation( self ):
        response = self.test_client.get( '/donation/donations/unknown-donation-id' )

        self.assertEqual( response.status_code, status.HTTP_404_NOT_FOUND )

    def test_user_donations( self ):
        with self.app.app_context():
            create_donation( { 'id': 'own-donation', 'user_id': USER_ID } )
            create_donation( { 'id': 'other-donation', 'user_id': 'user-2' } )

        response = self.test_client.get( '/donation/donations/user', headers=self.headers )

        self.assertEqual( response.status_code, status.HTTP_200_OK )
        self.assertEqual( [ donation[ 'id' ] for donation in self.decode( response ) ], [ 'own-donation' ] )

    def test_user_donations_requires_token( self ):
        response = self.test_client.get( '/donation/donations/user' )

        self.assertEqual( response.status_code, status.HTTP_401_UNAUTHORIZED )

    def test_cause_donors( self ):
        with self.app.app_context():
            create_donation( { 'id': 'named-donation', 'state': 'completed' } )
            create_donation( { 'id': 'anonymous-donation', 'state': 'completed', 'is_anonymous': True } )
            create_donation( { 'id': 'pending-donation' } )

        response = self.test_client.get( '/donation/causes/{}/donors'.format( CAUSE_ID ) )

        self.assertEqual( response.status_code, status.HTTP_200_OK )
        body = self.decode( response )
        self.assertEqual( body[ 'cause_id' ], CAUSE_ID )
        self.assertEqual( len( body[ 'donors' ] ), 2 )
        for donor in body[ 'donors' ]:
            self.assertNotIn( 'donor_email', donor )
            if donor[ 'is_anonymous' ]:
                self.assertNotIn( 'donor_name', donor )
            else:
                self.assertEqual( donor[ 'donor_name' ], 'Jane Donor' )

    def test_cause_donors_unknown_cause( self ):
        response = self.test_client.get( '/donation/causes/unknown-cause/donors' )

        self.assertEqual( response.status_code, status.HTTP_404_NOT_FOUND )

    def test_user_subscriptions( self ):
        with self.app.app_context():
            create_subscription()
            create_subscription( { 'id': 'other-subscription', 'user_id': 'user-2' } )

        response = self.test_client.get( '/donation/subscriptions/user', headers=self.headers )

        self.assertEqual( response.status_code, status.HTTP_200_OK )
        subscriptions = self.decode( response )
        self.assertEqual( [ subscription[ 'id' ] for subscription in subscriptions ], [ SUBSCRIPTION_ID ] )
        self.assertEqual( subscriptions[ 0 ][ 'frequency' ], 'monthly' )

    def test_subscription_charges( self ):
        with self.app.app_context():
            subscription_id = create_subscription( { 'state': 'active' } )
            database.session.add( SubscriptionChargeModel(
                subscription_id=subscription_id, amount=Decimal( '1000.00' ), state='completed',
                external_reference='TXN-CHARGE-1'
            ) )
            database.session.commit()

        response = self.test_client.get(
            '/donation/subscriptions/{}/charges'.format( subscription_id ), headers=self.headers
        )

        self.assertEqual( response.status_code, status.HTTP_200_OK )
        charges = self.decode( response )
        self.assertEqual( len( charges ), 1 )
        self.assertEqual( charges[ 0 ][ 'external_reference' ], 'TXN-CHARGE-1' )

        response = self.test_client.get(
            '/donation/subscriptions/{}/charges'.format( subscription_id ), headers=self.other_headers
        )
        self.assertEqual( response.status_code, status.HTTP_404_NOT_FOUND )

    @mock.patch( GATEWAY_POST, side_effect=mock_gateway_post )
    def test_cancel_subscription( self, mock_post ):
        with self.app.app_context():
            subscription_id = create_subscription(
                { 'state': 'active', 'external_subscription_id': EXTERNAL_SUBSCRIPTION_ID }
            )

        response = self.test_client.post(
            '/donation/subscriptions/{}/cancel'.format( subscription_id ), headers=self.headers
        )

        self.assertEqual( response.status_code, status.HTTP_202_ACCEPTED )
        self.assertEqual( self.decode( response ), { 'subscription_id': subscription_id, 'state': 'active' } )
        self.assertEqual( mock_post.call_count, 1 )

    @mock.patch( GATEWAY_POST, side_effect=mock_gateway_post )
    def test_cancel_pending_subscription( self, mock_post ):
        with self.app.app_context():
            subscription_id = create_subscription()

        response = self.test_client.post(
            '/donation/subscriptions/{}/cancel'.format( subscription_id ), headers=self.headers
        )

        self.assertEqual( response.status_code, status.HTTP_409_CONFLICT )
        mock_post.assert_not_called()

    @mock.patch( GATEWAY_POST, side_effect=mock_gateway_post )
    def test_cancel_other_users_subscription( self, mock_post ):
        with self.app.app_context():
            subscription_id = create_subscription(
                { 'state': 'active', 'external_subscription_id': EXTERNAL_SUBSCRIPTION_ID }
            )

        response = self.test_client.post(
            '/donation/subscriptions/{}/cancel'.format( subscription_id ), headers=self.other_headers
        )

        self.assertEqual( response.status_code, status.HTTP_404_NOT_FOUND )
        mock_post.assert_not_called()
