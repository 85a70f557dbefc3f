"""The model for the Donations API service: gateway_event table.

Every webhook delivery is written here with the outcome of reconciliation, so that orphaned and conflicting events
stay available for manual inspection.
"""
# pylint: disable=R0903
from datetime import datetime

from donation_service.flask_essentials import database

OUTCOME_APPLIED = 'applied'
OUTCOME_DUPLICATE = 'duplicate'
OUTCOME_CONFLICT = 'conflict'
OUTCOME_ORPHANED = 'orphaned'
OUTCOME_REJECTED = 'rejected'

EVENT_OUTCOMES = ( OUTCOME_APPLIED, OUTCOME_DUPLICATE, OUTCOME_CONFLICT, OUTCOME_ORPHANED, OUTCOME_REJECTED )


class GatewayEventModel( database.Model ):
    """Audit row for a gateway webhook delivery."""

    __tablename__ = 'gateway_event'
    id = database.Column( database.Integer, primary_key=True, autoincrement=True, nullable=False )
    event_type = database.Column( database.VARCHAR( 64 ), nullable=True, default=None )
    reference_id = database.Column( database.VARCHAR( 64 ), nullable=True, default=None, index=True )
    external_id = database.Column( database.VARCHAR( 64 ), nullable=True, default=None )
    payload = database.Column( database.Text, nullable=True )
    outcome = database.Column(
        database.Enum( *EVENT_OUTCOMES, native_enum=False, name='gateway_event_outcome' ), nullable=False
    )
    received_at = database.Column( database.DateTime, nullable=False, default=datetime.utcnow )
