"""Controllers for Flask-RESTful resources: recurring donation views and cancellation."""
from donation_service.exceptions.exception_model import ModelSubscriptionNotFoundError
from donation_service.helpers.record_store import SubscriptionStore
from donation_service.helpers.service_factory import build_orchestrator
from donation_service.schemas.subscription import SubscriptionSchema
from donation_service.schemas.subscription_charge import SubscriptionChargeSchema


def get_user_subscriptions( user_id ):
    return SubscriptionSchema( many=True ).dump( SubscriptionStore.find_by_user( user_id ) )


def get_subscription_charges( subscription_id, user_id ):
    """The charge history of a subscription owned by the signed-in user.

    :param str subscription_id: The subscription ID.
    :param str user_id: The signed-in user.
    :return: List of charges, newest first.
    :raises ModelSubscriptionNotFoundError: No such subscription for this user.
    """

    subscription_store = SubscriptionStore()
    subscription = subscription_store.get( subscription_id )
    if subscription is None or subscription.user_id != user_id:
        raise ModelSubscriptionNotFoundError()
    return SubscriptionChargeSchema( many=True ).dump( subscription_store.list_charges( subscription.id ) )


def cancel_subscription( subscription_id, user_id ):
    return build_orchestrator().request_subscription_cancellation( subscription_id, user_id )
