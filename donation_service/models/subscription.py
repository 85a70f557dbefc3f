"""The model for the Donations API service: subscription table.

A subscription is the recurring counterpart of a donation intent. It does not record individual charges: every
recurring charge reported by the gateway becomes a SubscriptionChargeModel row that points back here.
"""
# pylint: disable=R0903
from datetime import datetime

from donation_service.flask_essentials import database
from donation_service.models.donation import generate_record_id

PENDING_ACTIVATION = 'pending_activation'
ACTIVE = 'active'
PAST_DUE = 'past_due'
CANCELLED = 'cancelled'

SUBSCRIPTION_STATES = ( PENDING_ACTIVATION, ACTIVE, PAST_DUE, CANCELLED )

WEEKLY = 'weekly'
MONTHLY = 'monthly'
QUARTERLY = 'quarterly'
ANNUALLY = 'annually'

FREQUENCIES = ( WEEKLY, MONTHLY, QUARTERLY, ANNUALLY )


class SubscriptionModel( database.Model ):
    """A recurring donation owned by an authenticated user."""

    __tablename__ = 'subscription'
    id = database.Column( database.String( 36 ), primary_key=True, nullable=False, default=generate_record_id )
    user_id = database.Column( database.String( 64 ), nullable=False, index=True )
    cause_id = database.Column( database.String( 36 ), nullable=False, index=True )
    amount = database.Column( database.DECIMAL( 10, 2 ), nullable=False )
    frequency = database.Column(
        database.Enum( *FREQUENCIES, native_enum=False, name='subscription_frequency' ), nullable=False
    )
    subscription_type = database.Column( database.VARCHAR( 32 ), nullable=False, default='recurring_donation' )
    donor_name = database.Column( database.VARCHAR( 255 ), nullable=True, default=None )
    donor_email = database.Column( database.VARCHAR( 255 ), nullable=True, default=None )
    is_anonymous = database.Column( database.Boolean, nullable=False, default=False )
    state = database.Column(
        database.Enum( *SUBSCRIPTION_STATES, native_enum=False, name='subscription_state' ),
        nullable=False,
        default=PENDING_ACTIVATION,
        index=True
    )
    external_subscription_id = database.Column( database.VARCHAR( 64 ), nullable=True, default=None )
    next_billing_date = database.Column( database.Date, nullable=True, default=None )
    created_at = database.Column( database.DateTime, nullable=False, default=datetime.utcnow )
    activated_at = database.Column( database.DateTime, nullable=True, default=None )
    cancelled_at = database.Column( database.DateTime, nullable=True, default=None )
