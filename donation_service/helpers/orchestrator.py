"""Core code that initiates donations and recurring donations and hands the donor off to the payment gateway.

The orchestrator validates the request, creates exactly one record in a pending state and asks the gateway for a
redirect. It returns as soon as the redirect is known. It never polls the gateway and never completes or activates a
record: that is left to the webhook reconciler, since the donor may finish paying on another device long after this
request is gone.

If the gateway call fails the record it was made for is closed before the error is raised, so that no pending
record is left behind without a gateway session.
"""
import logging
from datetime import datetime

from donation_service.exceptions.exception_critical_path import GatewayCorrectiveFailurePathError
from donation_service.exceptions.exception_donation import SubscriptionNotCancellableError
from donation_service.exceptions.exception_model import ModelSubscriptionNotFoundError
from donation_service.helpers.donation_validation import validate_amount
from donation_service.helpers.donation_validation import validate_cause
from donation_service.helpers.donation_validation import validate_donor
from donation_service.helpers.donation_validation import validate_recurring
from donation_service.models.donation import FAILED
from donation_service.models.donation import PAYMENT_INITIATED
from donation_service.models.donation import PENDING_PAYMENT
from donation_service.models.subscription import ACTIVE
from donation_service.models.subscription import CANCELLED
from donation_service.models.subscription import PAST_DUE
from donation_service.models.subscription import PENDING_ACTIVATION

DONATION_RETURN_PATH = '/donation/complete'
SUBSCRIPTION_RETURN_PATH = '/donation/subscription/complete'
CANCELLABLE_SUBSCRIPTION_STATES = ( ACTIVE, PAST_DUE )


class DonationOrchestrator:
    """Initiate one-time and recurring donations.

    :param gateway: A PaymentGatewayClient.
    :param donation_store: A DonationStore.
    :param subscription_store: A SubscriptionStore.
    :param cause_store: A CauseStore.
    :param settings: The Flask app.config, or any mapping with the same keys.
    """

    def __init__( self, gateway, donation_store, subscription_store, cause_store, settings ):
        self.gateway = gateway
        self.donation_store = donation_store
        self.subscription_store = subscription_store
        self.cause_store = cause_store
        self.settings = settings

    def initiate_donation(
            self, cause_id, amount, donor_info, is_anonymous, message, user_id=None, frequency=None, user_email=None
    ):
        """Validate a donation request, create its record and obtain the gateway redirect.

        A frequency makes the request a recurring donation.

        :param str cause_id: The cause the donation is for.
        :param amount: The amount as submitted, a number or a numeric string.
        :param dict donor_info: { 'name': ..., 'email': ... }, either may be missing for anonymous donors.
        :param bool is_anonymous: Hide the donor from every public view.
        :param str message: Optional message to the cause.
        :param str user_id: The signed-in user, None for an anonymous caller.
        :param str frequency: weekly, monthly, quarterly or annually for a recurring donation.
        :param str user_email: The email claim of the signed-in user.
        :return: { 'donation_id', 'redirect_url' } or { 'subscription_id', 'redirect_url' }
        :raises ValidationError: The request failed validation; nothing was created.
        :raises AuthenticationRequiredError: A recurring donation from an anonymous caller; nothing was created.
        :raises GatewayError: The gateway call failed; the record was closed.
        """

        donor_info = donor_info or {}
        donor_name = donor_info.get( 'name' )
        donor_email = donor_info.get( 'email' )
        is_anonymous = bool( is_anonymous )

        parsed_amount = validate_amount( amount, self.settings[ 'MINIMUM_PAYMENT_AMOUNT' ] )
        validate_cause( self.cause_store.get( cause_id ), parsed_amount )
        validate_donor( donor_name, donor_email, is_anonymous, message, self.settings[ 'MAXIMUM_MESSAGE_LENGTH' ] )

        record = {
            'cause_id': str( cause_id ),
            'amount': parsed_amount,
            'donor_name': donor_name.strip() if donor_name else None,
            'donor_email': donor_email.strip() if donor_email else None,
            'is_anonymous': is_anonymous
        }
        customer_email = record[ 'donor_email' ] or user_email or self.settings[ 'ANONYMOUS_DONOR_EMAIL' ]
        customer_name = record[ 'donor_name' ] if record[ 'donor_name' ] and not is_anonymous else 'Anonymous'

        if frequency is not None:
            validate_recurring( user_id, frequency, parsed_amount, self.settings[ 'MINIMUM_SUBSCRIPTION_AMOUNT' ] )
            return self.initiate_subscription( record, user_id, frequency, customer_email, customer_name )

        record[ 'user_id' ] = user_id
        record[ 'message' ] = message or None
        return self.initiate_one_time( record, customer_email, customer_name )

    def initiate_one_time( self, record, customer_email, customer_name ):
        donation = self.donation_store.create( state=PENDING_PAYMENT, **record )
        donation_id = donation.id
        logging.info( 'Donation %s created for cause %s.', donation_id, record[ 'cause_id' ] )

        try:
            checkout = self.gateway.create_charge(
                amount=record[ 'amount' ],
                reference_id=donation_id,
                customer_email=customer_email,
                customer_name=customer_name,
                description=self.build_description( record[ 'cause_id' ] ),
                return_path=DONATION_RETURN_PATH
            )
        except Exception as error:  # pylint: disable=broad-except
            # No donation stays pending after a failed gateway call, whatever the failure.
            logging.error(
                'Gateway charge failed for donation %s: %s', donation_id, getattr( error, 'message', error )
            )
            self.close_record( self.donation_store, donation_id, PENDING_PAYMENT, FAILED )
            raise

        if self.donation_store.transition( donation_id, [ PENDING_PAYMENT ], PAYMENT_INITIATED ):
            self.donation_store.commit()
        else:
            # A webhook beat the redirect back: the reconciler owns the record now.
            self.donation_store.rollback()

        return { 'donation_id': donation_id, 'redirect_url': checkout[ 'redirect_url' ] }

    def initiate_subscription( self, record, user_id, frequency, customer_email, customer_name ):
        subscription_type = self.settings[ 'RECURRING_SUBSCRIPTION_TYPE' ]
        subscription = self.subscription_store.create(
            user_id=user_id,
            frequency=frequency,
            subscription_type=subscription_type,
            state=PENDING_ACTIVATION,
            **record
        )
        subscription_id = subscription.id
        logging.info( 'Subscription %s created for user %s.', subscription_id, user_id )

        try:
            checkout = self.gateway.create_subscription(
                amount=record[ 'amount' ],
                frequency=frequency,
                subscription_type=subscription_type,
                reference_id=subscription_id,
                customer_email=customer_email,
                customer_name=customer_name,
                description=self.build_description( record[ 'cause_id' ], frequency ),
                return_path=SUBSCRIPTION_RETURN_PATH
            )
        except Exception as error:  # pylint: disable=broad-except
            logging.error(
                'Gateway subscription failed for %s: %s', subscription_id, getattr( error, 'message', error )
            )
            self.close_record(
                self.subscription_store, subscription_id, PENDING_ACTIVATION, CANCELLED, cancelled_at=datetime.utcnow()
            )
            raise

        # Kept so that later postbacks carrying only the gateway subscription ID find the record.
        if checkout.get( 'external_subscription_id' ) and self.subscription_store.transition(
                subscription_id,
                [ PENDING_ACTIVATION ],
                PENDING_ACTIVATION,
                external_subscription_id=checkout[ 'external_subscription_id' ]
        ):
            self.subscription_store.commit()
        else:
            self.subscription_store.rollback()

        return { 'subscription_id': subscription_id, 'redirect_url': checkout[ 'redirect_url' ] }

    def request_subscription_cancellation( self, subscription_id, user_id ):
        """Ask the gateway to cancel a subscription. The record changes when the cancellation webhook arrives.

        :param str subscription_id: The subscription to cancel.
        :param str user_id: The signed-in user: must own the subscription.
        :return: { 'subscription_id', 'state' } with the unchanged local state.
        :raises ModelSubscriptionNotFoundError: No such subscription for this user.
        :raises SubscriptionNotCancellableError: Not active or past due.
        :raises GatewayError: The gateway call failed.
        """

        subscription = self.subscription_store.get( subscription_id )
        if subscription is None or subscription.user_id != str( user_id ):
            raise ModelSubscriptionNotFoundError()
        if subscription.state not in CANCELLABLE_SUBSCRIPTION_STATES or not subscription.external_subscription_id:
            raise SubscriptionNotCancellableError( subscription.state )

        self.gateway.cancel_subscription( subscription.external_subscription_id )
        logging.info( 'Cancellation requested for subscription %s.', subscription_id )
        return { 'subscription_id': subscription.id, 'state': subscription.state }

    @staticmethod
    def close_record( store, record_id, from_state, to_state, **fields ):
        """Mark a record whose gateway call failed, logging rather than masking the gateway error."""

        try:
            if store.transition( record_id, [ from_state ], to_state, **fields ):
                store.commit()
            else:
                store.rollback()
        except Exception:  # pylint: disable=broad-except
            store.rollback()
            logging.exception( GatewayCorrectiveFailurePathError( record_id ).message )

    def build_description( self, cause_id, frequency=None ):
        cause = self.cause_store.get( cause_id )
        title = cause.title if cause is not None and cause.title else 'Donation'
        if frequency:
            return '{} ({} donation)'.format( title, frequency )
        return title

