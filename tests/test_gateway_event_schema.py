"""The module tests how gateway webhook payloads are normalized and validated."""
import unittest
from decimal import Decimal

from marshmallow import ValidationError

from donation_service.schemas.gateway_event import GatewayEvent
from donation_service.schemas.gateway_event import load_gateway_event
from donation_service.schemas.gateway_event import normalize_gateway_payload
from tests.helpers.default_dictionaries import get_gateway_event_dict
from tests.helpers.default_dictionaries import get_gateway_postback_dict


class GatewayEventSchemaTestCase( unittest.TestCase ):
    """This test suite is designed to verify the gateway event schemas.

    python -m unittest -v tests.test_gateway_event_schema.GatewayEventSchemaTestCase
    """

    def test_canonical_event( self ):
        event = load_gateway_event( get_gateway_event_dict( { 'amount': '25.00', 'extra_field': 'ignored' } ) )

        self.assertIsInstance( event, GatewayEvent )
        self.assertEqual( event.event_type, 'charge.succeeded' )
        self.assertEqual( event.external_id, 'TXN-0001' )
        self.assertEqual( event.amount, Decimal( '25.00' ) )
        self.assertTrue( event.is_donation_event )
        self.assertFalse( event.is_charge_event )
        self.assertFalse( hasattr( event, 'extra_field' ) )

    def test_postback_success_is_a_charge_succeeded( self ):
        postback = get_gateway_postback_dict( { 'ResponseCode': 1, 'TransactionNumber': 'TXN-9' } )

        normalized = normalize_gateway_payload( postback )

        self.assertEqual( normalized[ 'event_type' ], 'charge.succeeded' )
        self.assertEqual( normalized[ 'reference_id' ], postback[ 'CustomOrderId' ] )
        self.assertEqual( normalized[ 'external_id' ], 'TXN-9' )
        self.assertEqual( normalized[ 'transaction_number' ], 'TXN-9' )

    def test_postback_failure_is_a_charge_failed( self ):
        normalized = normalize_gateway_payload( get_gateway_postback_dict( { 'ResponseCode': '2' } ) )

        self.assertEqual( normalized[ 'event_type' ], 'charge.failed' )

    def test_postback_with_subscription_is_a_subscription_charge( self ):
        postback = get_gateway_postback_dict( { 'subscription_id': 'gateway-subscription-id' } )

        event = load_gateway_event( postback )

        self.assertEqual( event.event_type, 'subscription.charge_succeeded' )
        self.assertEqual( event.external_id, 'gateway-subscription-id' )
        self.assertTrue( event.is_charge_event )

    def test_postback_drops_empty_values( self ):
        normalized = normalize_gateway_payload( get_gateway_postback_dict( { 'ResponseDescription': '' } ) )

        self.assertNotIn( 'description', normalized )

    def test_subscription_charge_requires_transaction_number( self ):
        payload = {
            'event_type': 'subscription.charge_succeeded',
            'reference_id': 'subscription-id',
            'external_id': 'gateway-subscription-id'
        }

        with self.assertRaises( ValidationError ) as context:
            load_gateway_event( payload )
        self.assertIn( 'transaction_number', context.exception.messages )

    def test_missing_reference_id( self ):
        with self.assertRaises( ValidationError ) as context:
            load_gateway_event( { 'event_type': 'charge.succeeded', 'reference_id': '' } )
        self.assertIn( 'reference_id', context.exception.messages )

    def test_unknown_event_type( self ):
        with self.assertRaises( ValidationError ) as context:
            load_gateway_event( get_gateway_event_dict( { 'event_type': 'charge.disputed' } ) )
        self.assertIn( 'event_type', context.exception.messages )

    def test_payload_not_an_object( self ):
        with self.assertRaises( ValidationError ):
            load_gateway_event( [ 'charge.succeeded' ] )

    def test_numeric_identifiers_are_read_as_strings( self ):
        payload = {
            'event_type': 'subscription.charge_succeeded',
            'reference_id': 4821,
            'external_id': 17651,
            'transaction_number': 90013
        }

        event = load_gateway_event( payload )

        self.assertEqual( event.reference_id, '4821' )
        self.assertEqual( event.external_id, '17651' )
        self.assertEqual( event.transaction_number, '90013' )

    def test_boolean_identifier_is_rejected( self ):
        with self.assertRaises( ValidationError ) as context:
            load_gateway_event( get_gateway_event_dict( { 'external_id': True } ) )
        self.assertIn( 'external_id', context.exception.messages )
