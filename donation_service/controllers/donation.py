"""Controllers for Flask-RESTful resources: donation views."""
from donation_service.helpers.record_store import CauseStore
from donation_service.helpers.record_store import DonationStore
from donation_service.schemas.donation import DonationSchema
from donation_service.schemas.donation import dump_cause_donors
from donation_service.schemas.donation import dump_public_donation


def get_donation( donation_id ):
    """The public view of one donation.

    :param str donation_id: The donation ID returned when the donation was initiated.
    :return: Dictionary
    :raises ModelDonationNotFoundError: No such donation.
    """

    return dump_public_donation( DonationStore().get_or_raise( donation_id ) )


def get_user_donations( user_id ):
    """The donation history of the signed-in user."""

    return DonationSchema( many=True ).dump( DonationStore.find_by_user( user_id ) )


def get_cause_donors( cause_id ):
    """Completed donations for a cause with anonymous donors hidden.

    :param str cause_id: The cause ID.
    :return: { 'cause_id', 'amount_raised', 'donors' }
    :raises ModelCauseNotFoundError: No such cause.
    """

    cause = CauseStore().get_or_raise( cause_id )
    return {
        'cause_id': cause.id,
        'amount_raised': str( cause.amount_raised ),
        'donors': dump_cause_donors( DonationStore.find_completed_for_cause( cause.id ) )
    }
