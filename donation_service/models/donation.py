"""The model for the Donations API service: donation table.

Tables are explicitly named. Notice that the database=SQLAlchemy() is done through the import of flask_essentials.
This will keep the Marshmallow and model SQLAlchemy sessions the same.

A donation is a donation intent: it is created in pending_payment before the donor is sent to the gateway, and only
the webhook reconciler ( or the timeout sweep ) moves it to a terminal state. Amount, cause and donor attribution are
fixed at creation; see DonationStore for the columns a transition may touch.
"""
# pylint: disable=R0903
import uuid
from datetime import datetime

from donation_service.flask_essentials import database

PENDING_PAYMENT = 'pending_payment'
PAYMENT_INITIATED = 'payment_initiated'
COMPLETED = 'completed'
FAILED = 'failed'
EXPIRED = 'expired'

DONATION_STATES = ( PENDING_PAYMENT, PAYMENT_INITIATED, COMPLETED, FAILED, EXPIRED )
DONATION_PENDING_STATES = ( PENDING_PAYMENT, PAYMENT_INITIATED )


def generate_record_id():
    """The opaque identifier handed to the gateway as the order reference."""
    return str( uuid.uuid4() )


class DonationModel( database.Model ):
    """A one-time donation intent and its payment lifecycle."""

    __tablename__ = 'donation'
    id = database.Column( database.String( 36 ), primary_key=True, nullable=False, default=generate_record_id )
    cause_id = database.Column( database.String( 36 ), nullable=False, index=True )
    user_id = database.Column( database.String( 64 ), nullable=True, default=None, index=True )
    amount = database.Column( database.DECIMAL( 10, 2 ), nullable=False )
    donor_name = database.Column( database.VARCHAR( 255 ), nullable=True, default=None )
    donor_email = database.Column( database.VARCHAR( 255 ), nullable=True, default=None )
    is_anonymous = database.Column( database.Boolean, nullable=False, default=False )
    message = database.Column( database.VARCHAR( 200 ), nullable=True, default=None )
    state = database.Column(
        database.Enum( *DONATION_STATES, native_enum=False, name='donation_state' ),
        nullable=False,
        default=PENDING_PAYMENT,
        index=True
    )
    external_reference = database.Column( database.VARCHAR( 64 ), nullable=True, default=None )
    created_at = database.Column( database.DateTime, nullable=False, default=datetime.utcnow )
    completed_at = database.Column( database.DateTime, nullable=True, default=None )
