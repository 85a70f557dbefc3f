"""Marshmallow schemas for the gateway webhook events. Not part of the application model.

A webhook payload is turned into a GatewayEvent in two steps:

    1. normalize_gateway_payload() maps the gateway's raw postback form ( ResponseCode, TransactionNumber,
       CustomOrderId, subscription_id ) onto the canonical keys. Payloads that already carry an event_type pass
       through untouched.
    2. The schema registered for the event_type validates the canonical payload and builds the GatewayEvent.

Anything that fails either step raises a marshmallow ValidationError and is never seen by the state machines.
"""
# pylint: disable=too-few-public-methods
from marshmallow import EXCLUDE
from marshmallow import fields
from marshmallow import post_load
from marshmallow import pre_load
from marshmallow import Schema
from marshmallow import ValidationError
from marshmallow.validate import Length

CHARGE_SUCCEEDED = 'charge.succeeded'
CHARGE_FAILED = 'charge.failed'
SUBSCRIPTION_ACTIVATED = 'subscription.activated'
SUBSCRIPTION_ACTIVATION_FAILED = 'subscription.activation_failed'
SUBSCRIPTION_CHARGE_SUCCEEDED = 'subscription.charge_succeeded'
SUBSCRIPTION_CHARGE_FAILED = 'subscription.charge_failed'
SUBSCRIPTION_CANCELLED = 'subscription.cancelled'

DONATION_EVENT_TYPES = ( CHARGE_SUCCEEDED, CHARGE_FAILED )
SUBSCRIPTION_CHARGE_EVENT_TYPES = ( SUBSCRIPTION_CHARGE_SUCCEEDED, SUBSCRIPTION_CHARGE_FAILED )

GATEWAY_SUCCESS_CODE = '1'

IDENTIFIER_FIELDS = ( 'reference_id', 'external_id', 'transaction_number' )


class GatewayEvent:
    """A validated gateway event."""

    def __init__(
            self, event_type, reference_id, external_id=None, transaction_number=None, amount=None, description=None
    ):
        self.event_type = event_type
        self.reference_id = reference_id
        self.external_id = external_id
        self.transaction_number = transaction_number
        self.amount = amount
        self.description = description

    @property
    def is_donation_event( self ):
        return self.event_type in DONATION_EVENT_TYPES

    @property
    def is_charge_event( self ):
        return self.event_type in SUBSCRIPTION_CHARGE_EVENT_TYPES

    def __repr__( self ):
        return '<GatewayEvent {} {}>'.format( self.event_type, self.reference_id )


class GatewayEventSchema( Schema ):
    """The fields shared by every gateway event."""

    class Meta:
        """Gateways add fields over time: ignore what is not used."""

        unknown = EXCLUDE

    event_type = fields.Str( required=True )
    reference_id = fields.Str( required=True, validate=Length( min=1 ) )
    external_id = fields.Str( load_default=None, allow_none=True )
    transaction_number = fields.Str( load_default=None, allow_none=True )
    amount = fields.Decimal( load_default=None, allow_none=True )
    description = fields.Str( load_default=None, allow_none=True )

    @pre_load
    def stringify_identifiers( self, data, **kwargs ):
        """Gateways send numeric order and transaction IDs as JSON numbers: read them as strings."""

        if not isinstance( data, dict ):
            return data
        data = dict( data )
        for key in IDENTIFIER_FIELDS:
            value = data.get( key )
            if isinstance( value, ( int, float ) ) and not isinstance( value, bool ):
                data[ key ] = str( value )
        return data

    @post_load
    def make_event( self, data, **kwargs ):
        return GatewayEvent( **data )


class SubscriptionChargeEventSchema( GatewayEventSchema ):
    """Recurring charges are deduplicated on the transaction number, so it is required."""

    transaction_number = fields.Str( required=True, validate=Length( min=1 ) )


EVENT_SCHEMAS = {
    CHARGE_SUCCEEDED: GatewayEventSchema,
    CHARGE_FAILED: GatewayEventSchema,
    SUBSCRIPTION_ACTIVATED: GatewayEventSchema,
    SUBSCRIPTION_ACTIVATION_FAILED: GatewayEventSchema,
    SUBSCRIPTION_CHARGE_SUCCEEDED: SubscriptionChargeEventSchema,
    SUBSCRIPTION_CHARGE_FAILED: SubscriptionChargeEventSchema,
    SUBSCRIPTION_CANCELLED: GatewayEventSchema
}


def normalize_gateway_payload( payload ):
    """Map a raw gateway postback onto the canonical event keys.

    :param dict payload: The form or JSON body posted by the gateway.
    :return: A dictionary with event_type, reference_id and the optional keys that carry a value.
    """

    if not isinstance( payload, dict ):
        raise ValidationError( { '_schema': [ 'Gateway payload must be an object.' ] } )

    if 'event_type' in payload or 'ResponseCode' not in payload:
        return dict( payload )

    succeeded = str( payload.get( 'ResponseCode' ) ).strip() == GATEWAY_SUCCESS_CODE
    subscription_id = payload.get( 'subscription_id' )

    normalized = {
        'reference_id': payload.get( 'CustomOrderId' ) or payload.get( 'order_id' ),
        'amount': payload.get( 'amount' ),
        'description': payload.get( 'ResponseDescription' )
    }
    if subscription_id:
        normalized[ 'event_type' ] = SUBSCRIPTION_CHARGE_SUCCEEDED if succeeded else SUBSCRIPTION_CHARGE_FAILED
        normalized[ 'external_id' ] = subscription_id
        normalized[ 'transaction_number' ] = payload.get( 'TransactionNumber' )
    else:
        normalized[ 'event_type' ] = CHARGE_SUCCEEDED if succeeded else CHARGE_FAILED
        normalized[ 'external_id' ] = payload.get( 'TransactionNumber' )
        normalized[ 'transaction_number' ] = payload.get( 'TransactionNumber' )

    return { key: str( value ) for key, value in normalized.items() if value not in ( None, '' ) }


def load_gateway_event( payload ):
    """Validate a webhook payload into a GatewayEvent.

    :param dict payload: The form or JSON body posted by the gateway.
    :return: GatewayEvent
    :raises ValidationError: The payload is malformed or the event type is unknown.
    """

    normalized = normalize_gateway_payload( payload )
    schema_class = EVENT_SCHEMAS.get( normalized.get( 'event_type' ) )
    if schema_class is None:
        raise ValidationError(
            { 'event_type': [ 'Unknown gateway event type: {}.'.format( normalized.get( 'event_type' ) ) ] }
        )
    return schema_class().load( normalized )
