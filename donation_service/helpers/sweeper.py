"""Resolve donations and subscriptions the donor abandoned at the gateway.

A donor who closes the payment page leaves the record pending, and no webhook will ever arrive for it. The sweep runs
on a schedule and works in three passes over at most PENDING_SWEEP_BATCH_SIZE records each:

    1. Donations pending for longer than PENDING_STATUS_CHECK_MINUTES are looked up in the gateway transaction
       history. A confirmed payment is fed through the reconciler as if the webhook had arrived, so the usual
       idempotency and conflict rules apply.
    2. Donations still pending after PENDING_EXPIRY_HOURS are expired.
    3. Subscriptions still pending activation after PENDING_EXPIRY_HOURS are cancelled.

Each record is handled on its own: an error is logged and the sweep moves on to the next one.
"""
import logging
from datetime import datetime
from datetime import timedelta

from sqlalchemy.exc import SQLAlchemyError

from donation_service.exceptions.exception_critical_path import SweepPathError
from donation_service.exceptions.exception_gateway import GatewayError
from donation_service.helpers.gateway_client import PAYMENT_COMPLETED
from donation_service.helpers.notifications import RECORD_TYPE_DONATION
from donation_service.helpers.notifications import RECORD_TYPE_SUBSCRIPTION
from donation_service.models.donation import DONATION_PENDING_STATES
from donation_service.models.donation import EXPIRED
from donation_service.models.subscription import CANCELLED
from donation_service.models.subscription import PENDING_ACTIVATION
from donation_service.schemas.gateway_event import CHARGE_SUCCEEDED

MAP_PAYMENT_STATUS_EVENT = {
    PAYMENT_COMPLETED: CHARGE_SUCCEEDED
}


class PendingRecordSweeper:
    """One run of the pending record sweep."""

    def __init__( self, donation_store, subscription_store, reconciler, gateway, dispatcher, settings ):
        self.donation_store = donation_store
        self.subscription_store = subscription_store
        self.reconciler = reconciler
        self.gateway = gateway
        self.dispatcher = dispatcher
        self.status_check_after = timedelta( minutes=int( settings[ 'PENDING_STATUS_CHECK_MINUTES' ] ) )
        self.expire_after = timedelta( hours=int( settings[ 'PENDING_EXPIRY_HOURS' ] ) )
        self.batch_size = int( settings[ 'PENDING_SWEEP_BATCH_SIZE' ] )

    def run( self, now=None ):
        """Run the three passes.

        :param datetime now: Naive UTC time to measure ages from, defaults to utcnow().
        :return: A summary of what was done.
        """

        now = now or datetime.utcnow()
        summary = { 'checked': 0, 'resolved': 0, 'expired': 0, 'cancelled': 0, 'errors': 0 }

        self.check_pending_donations( now - self.status_check_after, summary )
        self.expire_pending_donations( now - self.expire_after, summary )
        self.cancel_pending_subscriptions( now - self.expire_after, now, summary )

        logging.info( 'Pending sweep: %s', summary )
        return summary

    def check_pending_donations( self, cutoff, summary ):
        for donation in self.donation_store.find_pending_older_than( cutoff, self.batch_size ):
            donation_id = donation.id
            summary[ 'checked' ] += 1
            try:
                payment = self.gateway.check_payment_status( donation_id )
                event_type = MAP_PAYMENT_STATUS_EVENT.get( payment[ 'status' ] )
                if event_type is None:
                    continue
                payload = {
                    'event_type': event_type,
                    'reference_id': donation_id,
                    'description': 'Resolved by the pending payment status check.'
                }
                if payment.get( 'transaction_number' ):
                    payload[ 'external_id' ] = payment[ 'transaction_number' ]
                    payload[ 'transaction_number' ] = payment[ 'transaction_number' ]
                self.reconciler.handle_gateway_event( payload )
                summary[ 'resolved' ] += 1
            except GatewayError as error:
                logging.warning( '%s %s', SweepPathError( 'status_check', donation_id ).message, error.message )
                summary[ 'errors' ] += 1
            except SQLAlchemyError:
                self.donation_store.rollback()
                logging.exception( SweepPathError( 'status_check', donation_id ).message )
                summary[ 'errors' ] += 1

    def expire_pending_donations( self, cutoff, summary ):
        for donation in self.donation_store.find_pending_older_than( cutoff, self.batch_size ):
            donation_id = donation.id
            details = { 'amount': donation.amount, 'cause_id': donation.cause_id }
            try:
                expired = self.donation_store.transition( donation_id, DONATION_PENDING_STATES, EXPIRED )
                if not expired:
                    self.donation_store.rollback()
                    continue
                self.donation_store.commit()
            except SQLAlchemyError:
                self.donation_store.rollback()
                logging.exception( SweepPathError( 'expire_donation', donation_id ).message )
                summary[ 'errors' ] += 1
                continue

            summary[ 'expired' ] += 1
            self.dispatcher.dispatch( RECORD_TYPE_DONATION, donation_id, EXPIRED, **details )

    def cancel_pending_subscriptions( self, cutoff, now, summary ):
        for subscription in self.subscription_store.find_pending_older_than( cutoff, self.batch_size ):
            subscription_id = subscription.id
            details = { 'amount': subscription.amount, 'cause_id': subscription.cause_id }
            try:
                cancelled = self.subscription_store.transition(
                    subscription_id, [ PENDING_ACTIVATION ], CANCELLED, cancelled_at=now
                )
                if not cancelled:
                    self.subscription_store.rollback()
                    continue
                self.subscription_store.commit()
            except SQLAlchemyError:
                self.subscription_store.rollback()
                logging.exception( SweepPathError( 'cancel_subscription', subscription_id ).message )
                summary[ 'errors' ] += 1
                continue

            summary[ 'cancelled' ] += 1
            self.dispatcher.dispatch( RECORD_TYPE_SUBSCRIPTION, subscription_id, CANCELLED, **details )
