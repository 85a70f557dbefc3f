"""Controllers for Flask-RESTful resources: handle the business logic for initiating a donation."""
import logging

from donation_service.helpers.identity import get_current_user_email
from donation_service.helpers.identity import get_current_user_id
from donation_service.helpers.service_factory import build_orchestrator
from donation_service.schemas.donation_request import DonationRequestSchema


def post_donation( payload ):
    """Initiate a one-time or recurring donation and return where to send the donor.

    The payload from the front-end looks like:

        payload = {
            "cause_id": "3f1c...",
            "amount": "2500",
            "donor_name": "Jane Donor",
            "donor_email": "jane@example.com",
            "is_anonymous": false,
            "message": "Keep up the good work",
            "frequency": "monthly"      <- only for a recurring donation
        }

    :param dict payload: The request body.
    :return: { 'donation_id', 'redirect_url' } or { 'subscription_id', 'redirect_url' }
    """

    donation_request = DonationRequestSchema().load( payload or {} )
    user_id = get_current_user_id()

    logging.debug( 'DONATION REQUEST for cause %s by %s', donation_request[ 'cause_id' ], user_id or 'anonymous' )

    return build_orchestrator().initiate_donation(
        cause_id=donation_request[ 'cause_id' ],
        amount=donation_request[ 'amount' ],
        donor_info={ 'name': donation_request[ 'donor_name' ], 'email': donation_request[ 'donor_email' ] },
        is_anonymous=donation_request[ 'is_anonymous' ],
        message=donation_request[ 'message' ],
        user_id=user_id,
        frequency=donation_request[ 'frequency' ] or None,
        user_email=get_current_user_email()
    )
