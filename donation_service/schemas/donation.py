"""Marshmallow schema module for DonationModel."""
# pylint: disable=too-few-public-methods
from marshmallow import fields
from marshmallow import post_dump
from marshmallow_sqlalchemy import SQLAlchemyAutoSchema

from donation_service.flask_essentials import database
from donation_service.models.donation import DonationModel

DONOR_FIELDS = ( 'donor_name', 'donor_email' )
PUBLIC_DONOR_FIELDS = ( 'id', 'cause_id', 'amount', 'donor_name', 'is_anonymous', 'message', 'completed_at' )


class DonationSchema( SQLAlchemyAutoSchema ):
    """Marshmallow schema for serialization of DonationModel.

    Every dump goes through hide_anonymous_donor: when the donor asked to stay anonymous the name and email are left
    out of the output even though the record may hold them.
    """

    amount = fields.Decimal( as_string=True )

    class Meta:
        """Meta object for Marshmallow schema."""

        model = DonationModel
        sqla_session = database.session

    @post_dump
    def hide_anonymous_donor( self, data, **kwargs ):
        """Strip donor attribution from anonymous donations.

        :param data: The dumped donation.
        :return: The dumped donation without donor name and email when anonymous.
        """

        if data.get( 'is_anonymous' ):
            for field in DONOR_FIELDS:
                data.pop( field, None )
        return data


def dump_public_donation( donation ):
    """The view of a donation shown to anyone holding its ID.

    :param donation: A DonationModel.
    :return: A dictionary without the owning user ID.
    """

    return DonationSchema( exclude=( 'user_id', ) ).dump( donation )


def dump_cause_donors( donations ):
    """The donor wall for a cause: completed donations with no contact details.

    :param donations: A list of DonationModel.
    :return: A list of dictionaries.
    """

    return DonationSchema( many=True, only=PUBLIC_DONOR_FIELDS ).dump( donations )
