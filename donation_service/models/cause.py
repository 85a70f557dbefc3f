"""The model for the Donations API service: cause table.

Causes are owned by the content database. The service only reads the minimum donation and keeps the running total
of completed donations, which is incremented in the same database transaction that completes a donation.
"""
# pylint: disable=R0903
from donation_service.flask_essentials import database


class CauseModel( database.Model ):
    """A fundraising cause that donations and recurring donations reference."""

    __tablename__ = 'cause'
    id = database.Column( database.String( 36 ), primary_key=True, nullable=False )
    title = database.Column( database.VARCHAR( 255 ), nullable=False, default='' )
    minimum_donation = database.Column( database.DECIMAL( 10, 2 ), nullable=False, default=0 )
    amount_raised = database.Column( database.DECIMAL( 12, 2 ), nullable=False, default=0 )
