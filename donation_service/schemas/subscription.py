"""Marshmallow schema module for SubscriptionModel."""
# pylint: disable=too-few-public-methods
from marshmallow import fields
from marshmallow import post_dump
from marshmallow_sqlalchemy import SQLAlchemyAutoSchema

from donation_service.flask_essentials import database
from donation_service.models.subscription import SubscriptionModel
from donation_service.schemas.donation import DONOR_FIELDS


class SubscriptionSchema( SQLAlchemyAutoSchema ):
    """Marshmallow schema for serialization of SubscriptionModel."""

    amount = fields.Decimal( as_string=True )

    class Meta:
        """Meta object for Marshmallow schema."""

        model = SubscriptionModel
        sqla_session = database.session

    @post_dump
    def hide_anonymous_donor( self, data, **kwargs ):
        """Anonymous recurring donations never show donor name or email."""

        if data.get( 'is_anonymous' ):
            for field in DONOR_FIELDS:
                data.pop( field, None )
        return data
