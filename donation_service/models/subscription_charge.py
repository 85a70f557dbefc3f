"""The model for the Donations API service: subscription_charge table.

One row per recurring charge reported by the gateway. The transaction number is unique so that a redelivered charge
event cannot produce a second row, and the subscription ID is fixed when the row is created.
"""
# pylint: disable=R0903
from datetime import datetime

from donation_service.flask_essentials import database

CHARGE_COMPLETED = 'completed'
CHARGE_FAILED = 'failed'

CHARGE_STATES = ( CHARGE_COMPLETED, CHARGE_FAILED )


class SubscriptionChargeModel( database.Model ):
    """Charge history entry attributed to exactly one subscription."""

    __tablename__ = 'subscription_charge'
    id = database.Column( database.Integer, primary_key=True, autoincrement=True, nullable=False )
    subscription_id = database.Column( database.String( 36 ), nullable=False, index=True )
    amount = database.Column( database.DECIMAL( 10, 2 ), nullable=False )
    state = database.Column(
        database.Enum( *CHARGE_STATES, native_enum=False, name='subscription_charge_state' ), nullable=False
    )
    external_reference = database.Column( database.VARCHAR( 64 ), nullable=False, unique=True )
    created_at = database.Column( database.DateTime, nullable=False, default=datetime.utcnow )
