"""Persistence for donations, subscriptions, their charges and the cause totals.

All state changes go through transition(): a conditional UPDATE ... WHERE id = :id AND state IN ( :from_states ).
Exactly one row changed means the caller won; zero rows means another writer got there first ( or the record is not in
a state the transition applies to ) and the caller should re-read the record and decide what that means.

Stores never commit on their own except in create(). Callers group a transition with its related writes, e.g.
completing a donation and incrementing the cause total, and then call commit() once.
"""
import json

from donation_service.exceptions.exception_model import ModelCauseNotFoundError
from donation_service.exceptions.exception_model import ModelDonationNotFoundError
from donation_service.exceptions.exception_model import ModelImmutableFieldError
from donation_service.exceptions.exception_model import ModelSubscriptionNotFoundError
from donation_service.flask_essentials import database
from donation_service.models.cause import CauseModel
from donation_service.models.donation import COMPLETED
from donation_service.models.donation import DONATION_PENDING_STATES
from donation_service.models.donation import DonationModel
from donation_service.models.gateway_event import GatewayEventModel
from donation_service.models.subscription import PENDING_ACTIVATION
from donation_service.models.subscription import SubscriptionModel
from donation_service.models.subscription_charge import SubscriptionChargeModel


class RecordStore:
    """Shared transaction handling for the stores."""

    model = None
    mutable_fields = frozenset()
    not_found_error = None

    @staticmethod
    def commit():
        database.session.commit()

    @staticmethod
    def rollback():
        database.session.rollback()

    def create( self, **fields ):
        """Insert a new record and commit it.

        :param fields: The column values.
        :return: The model instance.
        """

        record = self.model( **fields )
        database.session.add( record )
        try:
            database.session.commit()
        except Exception:
            database.session.rollback()
            raise
        return record

    def get( self, record_id ):
        """Return the record or None."""

        if record_id is None:
            return None
        return self.model.query.filter_by( id=str( record_id ) ).one_or_none()

    def get_or_raise( self, record_id ):
        record = self.get( record_id )
        if record is None:
            raise self.not_found_error()  # pylint: disable=not-callable
        return record

    def transition( self, record_id, from_states, to_state, **fields ):
        """Conditionally move a record to a new state.

        :param record_id: The record ID.
        :param from_states: The states the record must currently be in.
        :param to_state: The new state.
        :param fields: Extra columns to set; only the store's mutable fields are accepted.
        :return: True if this call changed the record.
        :raises ModelImmutableFieldError: A column fixed at creation was passed in fields.
        """

        immutable = set( fields ) - self.mutable_fields
        if immutable:
            raise ModelImmutableFieldError( immutable )

        values = dict( fields )
        values[ 'state' ] = to_state
        row_count = self.model.query.filter(
            self.model.id == str( record_id ),
            self.model.state.in_( list( from_states ) )
        ).update( values, synchronize_session='fetch' )
        return row_count == 1


class DonationStore( RecordStore ):
    """Donation records. Amount, cause and donor attribution never change after create()."""

    model = DonationModel
    mutable_fields = frozenset( { 'external_reference', 'completed_at' } )
    not_found_error = ModelDonationNotFoundError

    @staticmethod
    def find_by_user( user_id ):
        return DonationModel.query.filter_by( user_id=user_id ).order_by( DonationModel.created_at.desc() ).all()

    @staticmethod
    def find_completed_for_cause( cause_id ):
        return DonationModel.query.filter_by( cause_id=cause_id, state=COMPLETED )\
            .order_by( DonationModel.completed_at.desc() ).all()

    @staticmethod
    def find_pending_older_than( cutoff, limit ):
        """Donations still waiting on the gateway that were created before the cutoff, oldest first.

        :param datetime cutoff: Naive UTC datetime.
        :param int limit: The batch size.
        :return: A list of DonationModel.
        """

        return DonationModel.query.filter(
            DonationModel.state.in_( DONATION_PENDING_STATES ),
            DonationModel.created_at < cutoff
        ).order_by( DonationModel.created_at ).limit( limit ).all()


class SubscriptionStore( RecordStore ):
    """Subscription records and their charge history."""

    model = SubscriptionModel
    mutable_fields = frozenset( { 'external_subscription_id', 'activated_at', 'cancelled_at', 'next_billing_date' } )
    not_found_error = ModelSubscriptionNotFoundError

    @staticmethod
    def get_by_external_id( external_subscription_id ):
        if not external_subscription_id:
            return None
        return SubscriptionModel.query.filter_by( external_subscription_id=external_subscription_id ).first()

    @staticmethod
    def find_by_user( user_id ):
        return SubscriptionModel.query.filter_by( user_id=user_id )\
            .order_by( SubscriptionModel.created_at.desc() ).all()

    @staticmethod
    def find_pending_older_than( cutoff, limit ):
        return SubscriptionModel.query.filter(
            SubscriptionModel.state == PENDING_ACTIVATION,
            SubscriptionModel.created_at < cutoff
        ).order_by( SubscriptionModel.created_at ).limit( limit ).all()

    @staticmethod
    def get_charge( external_reference ):
        return SubscriptionChargeModel.query.filter_by( external_reference=external_reference ).one_or_none()

    @staticmethod
    def list_charges( subscription_id ):
        return SubscriptionChargeModel.query.filter_by( subscription_id=subscription_id )\
            .order_by( SubscriptionChargeModel.created_at.desc(), SubscriptionChargeModel.id.desc() ).all()

    def add_charge( self, subscription_id, amount, state, external_reference ):
        """Append a charge to the history unless the transaction number has been recorded before.

        The row is flushed but not committed. A concurrent insert of the same transaction number surfaces as an
        IntegrityError from the flush.

        :param subscription_id: The subscription the charge belongs to.
        :param amount: The charged amount.
        :param state: completed or failed.
        :param external_reference: The gateway transaction number.
        :return: The new SubscriptionChargeModel, or None when the charge was already recorded.
        """

        if self.get_charge( external_reference ) is not None:
            return None

        charge = SubscriptionChargeModel(
            subscription_id=subscription_id,
            amount=amount,
            state=state,
            external_reference=external_reference
        )
        database.session.add( charge )
        database.session.flush()
        return charge


class CauseStore:
    """Read access to causes plus the running total of completed donations."""

    @staticmethod
    def get( cause_id ):
        if not cause_id:
            return None
        return CauseModel.query.filter_by( id=str( cause_id ) ).one_or_none()

    def get_or_raise( self, cause_id ):
        cause = self.get( cause_id )
        if cause is None:
            raise ModelCauseNotFoundError()
        return cause

    @staticmethod
    def increment_amount_raised( cause_id, amount ):
        """Add to the cause total in the caller's transaction.

        :param cause_id: The cause ID.
        :param amount: The amount to add.
        :return: True if the cause exists.
        """

        row_count = CauseModel.query.filter( CauseModel.id == str( cause_id ) ).update(
            { 'amount_raised': CauseModel.amount_raised + amount }, synchronize_session='fetch'
        )
        return row_count == 1


class GatewayEventStore:
    """The audit trail of gateway webhook deliveries."""

    @staticmethod
    def record( payload, outcome, event_type=None, reference_id=None, external_id=None ):
        """Write and commit one gateway event row.

        :param payload: The payload as received.
        :param str outcome: applied, duplicate, conflict, orphaned or rejected.
        :return: The GatewayEventModel.
        """

        gateway_event = GatewayEventModel(
            event_type=event_type,
            reference_id=reference_id,
            external_id=external_id,
            payload=json.dumps( payload, default=str, sort_keys=True ),
            outcome=outcome
        )
        database.session.add( gateway_event )
        try:
            database.session.commit()
        except Exception:
            database.session.rollback()
            raise
        return gateway_event

    @staticmethod
    def find_by_reference( reference_id ):
        return GatewayEventModel.query.filter_by( reference_id=reference_id )\
            .order_by( GatewayEventModel.id ).all()
