"""Core code that reconciles gateway webhooks with the donation and subscription records.

Every event is treated as possibly redelivered, possibly out of order and possibly concurrent with another delivery
for the same record. The record is looked up by the reference ID the orchestrator handed to the gateway and moved with
a conditional transition. When the transition does not apply the record is read again:

    - the record already shows the outcome the event implies: duplicate, acknowledged without notifying again.
    - the record shows a different outcome: conflict, logged, and the first confirmed outcome is kept.

Unknown reference IDs are logged as orphaned and acknowledged, and malformed payloads are logged and acknowledged as
rejected, so that the gateway does not redeliver them forever. Only infrastructure failures ( the database is down )
escape from handle_gateway_event() and make the webhook answer with an error.

Donation:

    pending_payment, payment_initiated --[charge.succeeded]--> completed
    pending_payment, payment_initiated --[charge.failed]-----> failed

Subscription:

    pending_activation --[subscription.activated]-----------> active
    pending_activation --[subscription.activation_failed]---> cancelled
    pending_activation --[subscription.charge_succeeded]----> active
    past_due -----------[subscription.charge_succeeded]----> active
    active -------------[subscription.charge_failed]-------> past_due
    pending_activation, active, past_due --[subscription.cancelled]--> cancelled

Recurring charge events also append to the charge history, once per gateway transaction number.
"""
import logging
from datetime import datetime

from marshmallow import ValidationError as MarshmallowValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.exc import SQLAlchemyError

from donation_service.exceptions.exception_critical_path import GatewayEventLogPathError
from donation_service.exceptions.exception_critical_path import GatewayEventRejectedPathError
from donation_service.exceptions.exception_critical_path import OrphanedEventPathError
from donation_service.exceptions.exception_critical_path import ReconciliationConflictPathError
from donation_service.helpers.billing_schedule import next_billing_date
from donation_service.helpers.notifications import RECORD_TYPE_DONATION
from donation_service.helpers.notifications import RECORD_TYPE_SUBSCRIPTION
from donation_service.models.donation import COMPLETED
from donation_service.models.donation import DONATION_PENDING_STATES
from donation_service.models.donation import FAILED
from donation_service.models.gateway_event import OUTCOME_APPLIED
from donation_service.models.gateway_event import OUTCOME_CONFLICT
from donation_service.models.gateway_event import OUTCOME_DUPLICATE
from donation_service.models.gateway_event import OUTCOME_ORPHANED
from donation_service.models.gateway_event import OUTCOME_REJECTED
from donation_service.models.subscription import ACTIVE
from donation_service.models.subscription import CANCELLED
from donation_service.models.subscription import PAST_DUE
from donation_service.models.subscription import PENDING_ACTIVATION
from donation_service.models.subscription_charge import CHARGE_COMPLETED
from donation_service.models.subscription_charge import CHARGE_FAILED
from donation_service.schemas.gateway_event import CHARGE_SUCCEEDED
from donation_service.schemas.gateway_event import GatewayEvent
from donation_service.schemas.gateway_event import load_gateway_event
from donation_service.schemas.gateway_event import SUBSCRIPTION_ACTIVATED
from donation_service.schemas.gateway_event import SUBSCRIPTION_ACTIVATION_FAILED
from donation_service.schemas.gateway_event import SUBSCRIPTION_CANCELLED
from donation_service.schemas.gateway_event import SUBSCRIPTION_CHARGE_FAILED
from donation_service.schemas.gateway_event import SUBSCRIPTION_CHARGE_SUCCEEDED

RECORD_TYPE_SUBSCRIPTION_CHARGE = 'subscription_charge'

# States in which a subscription event has nothing left to do.
SUBSCRIPTION_SETTLED_STATES = {
    SUBSCRIPTION_ACTIVATED: ( ACTIVE, PAST_DUE ),
    SUBSCRIPTION_ACTIVATION_FAILED: ( CANCELLED, ),
    SUBSCRIPTION_CHARGE_SUCCEEDED: ( ACTIVE, ),
    SUBSCRIPTION_CHARGE_FAILED: ( PAST_DUE, PENDING_ACTIVATION ),
    SUBSCRIPTION_CANCELLED: ( CANCELLED, )
}


class WebhookReconciler:
    """Apply gateway events to the records.

    :param donation_store: A DonationStore.
    :param subscription_store: A SubscriptionStore.
    :param cause_store: A CauseStore.
    :param dispatcher: A NotificationDispatcher.
    :param event_log: A GatewayEventStore.
    """

    def __init__( self, donation_store, subscription_store, cause_store, dispatcher, event_log ):
        self.donation_store = donation_store
        self.subscription_store = subscription_store
        self.cause_store = cause_store
        self.dispatcher = dispatcher
        self.event_log = event_log

    def handle_gateway_event( self, payload ):
        """Validate and apply one webhook delivery.

        :param dict payload: The webhook body, canonical or in the gateway's postback form.
        :return: { 'acknowledged': True, 'outcome': ... }
        :raises SQLAlchemyError: The database could not be reached; the gateway should redeliver.
        """

        try:
            event = load_gateway_event( payload )
        except MarshmallowValidationError as error:
            logging.warning( GatewayEventRejectedPathError( error.messages ).message )
            self.log_event( payload, OUTCOME_REJECTED )
            return acknowledge( OUTCOME_REJECTED )

        logging.info( 'Gateway event %s for %s.', event.event_type, event.reference_id )
        if event.is_donation_event:
            outcome, notifications = self.reconcile_donation( event )
        else:
            outcome, notifications = self.reconcile_subscription( event )

        self.log_event( payload, outcome, event )

        # The transaction is committed: notifications can no longer be rolled back with it.
        for notification in notifications:
            self.dispatcher.dispatch( **notification )

        return acknowledge( outcome )

    def reconcile_donation( self, event ):
        """Apply charge.succeeded or charge.failed to a donation.

        :param GatewayEvent event: The validated event.
        :return: ( outcome, notifications )
        """

        donation = self.donation_store.get( event.reference_id )
        if donation is None and self.subscription_store.get( event.reference_id ) is not None:
            # The first payment of a subscription posted back without the gateway subscription ID.
            return self.reconcile_subscription( as_subscription_event( event ) )
        if donation is None:
            logging.warning( OrphanedEventPathError( event.reference_id, event.event_type ).message )
            return OUTCOME_ORPHANED, []

        donation_id = donation.id
        cause_id = donation.cause_id
        amount = donation.amount

        fields = {}
        target_state = FAILED
        if event.event_type == CHARGE_SUCCEEDED:
            target_state = COMPLETED
            fields = {
                'completed_at': datetime.utcnow(),
                'external_reference': event.external_id or event.transaction_number
            }

        if self.donation_store.transition( donation_id, DONATION_PENDING_STATES, target_state, **fields ):
            if target_state == COMPLETED:
                self.cause_store.increment_amount_raised( cause_id, amount )
            self.donation_store.commit()
            notification = {
                'record_type': RECORD_TYPE_DONATION,
                'record_id': donation_id,
                'state': target_state,
                'amount': amount,
                'cause_id': cause_id
            }
            return OUTCOME_APPLIED, [ notification ]

        self.donation_store.rollback()
        current_state = self.donation_store.get( donation_id ).state
        if current_state == target_state:
            logging.info( 'Duplicate %s for donation %s ignored.', event.event_type, donation_id )
            return OUTCOME_DUPLICATE, []

        logging.warning( ReconciliationConflictPathError( donation_id, event.event_type, current_state ).message )
        return OUTCOME_CONFLICT, []

    def reconcile_subscription( self, event ):
        """Apply a subscription event, recording charges in the history.

        :param GatewayEvent event: The validated event.
        :return: ( outcome, notifications )
        """

        subscription = self.subscription_store.get( event.reference_id ) \
            or self.subscription_store.get_by_external_id( event.external_id )
        if subscription is None:
            logging.warning( OrphanedEventPathError( event.reference_id, event.event_type ).message )
            return OUTCOME_ORPHANED, []

        subscription_id = subscription.id
        frequency = subscription.frequency
        details = { 'amount': subscription.amount, 'cause_id': subscription.cause_id, 'frequency': frequency }

        notifications = []
        charge_recorded = False
        if event.is_charge_event and event.transaction_number:
            charge_notification = self.record_charge( subscription, event )
            if charge_notification is not None:
                charge_recorded = True
                notifications.append( charge_notification )

        for from_states, target_state, fields in self.subscription_steps( event, frequency, charge_recorded ):
            if self.subscription_store.transition( subscription_id, from_states, target_state, **fields ):
                self.subscription_store.commit()
                if tuple( from_states ) != ( target_state, ):
                    notifications.append( dict(
                        record_type=RECORD_TYPE_SUBSCRIPTION,
                        record_id=subscription_id,
                        state=target_state,
                        **details
                    ) )
                return OUTCOME_APPLIED, notifications

        self.subscription_store.commit()
        current_state = self.subscription_store.get( subscription_id ).state
        if current_state in SUBSCRIPTION_SETTLED_STATES[ event.event_type ]:
            if charge_recorded:
                return OUTCOME_APPLIED, notifications
            logging.info( 'Duplicate %s for subscription %s ignored.', event.event_type, subscription_id )
            return OUTCOME_DUPLICATE, notifications

        logging.warning(
            ReconciliationConflictPathError( subscription_id, event.event_type, current_state ).message
        )
        return OUTCOME_CONFLICT, notifications

    def record_charge( self, subscription, event ):
        """Append a recurring charge to the history, once per transaction number.

        A successful charge is added to the cause total in the same transaction. Nothing is committed here.

        :return: The notification for a newly recorded charge, or None for one seen before.
        """

        succeeded = event.event_type == SUBSCRIPTION_CHARGE_SUCCEEDED
        amount = event.amount if event.amount is not None else subscription.amount
        try:
            charge = self.subscription_store.add_charge(
                subscription.id,
                amount,
                CHARGE_COMPLETED if succeeded else CHARGE_FAILED,
                event.transaction_number
            )
        except IntegrityError:
            # Another delivery of the same charge was flushed first.
            self.subscription_store.rollback()
            charge = None

        if charge is None:
            logging.info( 'Charge %s for subscription %s already recorded.', event.transaction_number, subscription.id )
            return None

        if succeeded:
            self.cause_store.increment_amount_raised( subscription.cause_id, amount )
        return {
            'record_type': RECORD_TYPE_SUBSCRIPTION_CHARGE,
            'record_id': subscription.id,
            'state': charge.state,
            'amount': amount,
            'transaction_number': event.transaction_number
        }

    @staticmethod
    def subscription_steps( event, frequency, charge_recorded ):
        """The conditional transitions to try for an event, in order. The first one that applies wins.

        :return: A list of ( from_states, target_state, fields ).
        """

        now = datetime.utcnow()
        billing = { 'next_billing_date': next_billing_date( frequency, now.date() ) }
        activation = dict( billing, activated_at=now )
        if event.external_id:
            activation[ 'external_subscription_id' ] = event.external_id
        cancellation = { 'cancelled_at': now }

        if event.event_type == SUBSCRIPTION_ACTIVATED:
            return [ ( [ PENDING_ACTIVATION ], ACTIVE, activation ) ]
        if event.event_type == SUBSCRIPTION_ACTIVATION_FAILED:
            return [ ( [ PENDING_ACTIVATION ], CANCELLED, cancellation ) ]
        if event.event_type == SUBSCRIPTION_CHARGE_SUCCEEDED:
            steps = [ ( [ PENDING_ACTIVATION ], ACTIVE, activation ), ( [ PAST_DUE ], ACTIVE, billing ) ]
            if charge_recorded:
                steps.append( ( [ ACTIVE ], ACTIVE, billing ) )
            return steps
        if event.event_type == SUBSCRIPTION_CHARGE_FAILED:
            return [ ( [ ACTIVE ], PAST_DUE, {} ) ]
        if event.event_type == SUBSCRIPTION_CANCELLED:
            return [ ( [ PENDING_ACTIVATION, ACTIVE, PAST_DUE ], CANCELLED, cancellation ) ]
        return []

    def log_event( self, payload, outcome, event=None ):
        """Write the audit row; a failure here is logged and does not change the acknowledgement."""

        try:
            self.event_log.record(
                payload,
                outcome,
                event_type=event.event_type if event is not None else None,
                reference_id=event.reference_id if event is not None else None,
                external_id=event.external_id if event is not None else None
            )
        except SQLAlchemyError:
            reference_id = event.reference_id if event is not None else None
            logging.exception( GatewayEventLogPathError( reference_id ).message )


def as_subscription_event( event ):
    """Read a one-time charge event as the first charge of the subscription its order ID names.

    The transaction number becomes the charge reference. The external ID is dropped: for a one-time charge it is the
    transaction number, not the gateway subscription ID the orchestrator already stored. Without a transaction number
    a success can only activate.

    :param GatewayEvent event: A charge.succeeded or charge.failed event.
    :return: GatewayEvent
    """

    succeeded = event.event_type == CHARGE_SUCCEEDED
    transaction_number = event.transaction_number or event.external_id
    if succeeded:
        event_type = SUBSCRIPTION_CHARGE_SUCCEEDED if transaction_number else SUBSCRIPTION_ACTIVATED
    else:
        event_type = SUBSCRIPTION_CHARGE_FAILED
    return GatewayEvent(
        event_type,
        event.reference_id,
        transaction_number=transaction_number,
        amount=event.amount,
        description=event.description
    )


def acknowledge( outcome ):
    return { 'acknowledged': True, 'outcome': outcome }
