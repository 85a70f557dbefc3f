"""Marshmallow schema module for the body of POST /donation/donate. Not part of the application model.

The schema is deliberately lenient: amount, donor and frequency checks belong to the orchestrator so that they come
back to the donor with a reason code. Only the shape of the payload is enforced here.
"""
# pylint: disable=too-few-public-methods
from marshmallow import EXCLUDE
from marshmallow import fields
from marshmallow import Schema


class DonationRequestSchema( Schema ):
    """Inbound donation request."""

    class Meta:
        """Unknown keys from the front-end are dropped."""

        unknown = EXCLUDE

    cause_id = fields.Str( load_default=None, allow_none=True )
    amount = fields.Raw( load_default=None, allow_none=True )
    donor_name = fields.Str( load_default=None, allow_none=True )
    donor_email = fields.Str( load_default=None, allow_none=True )
    is_anonymous = fields.Bool( load_default=False )
    message = fields.Str( load_default=None, allow_none=True )
    frequency = fields.Str( load_default=None, allow_none=True )
