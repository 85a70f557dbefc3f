"""Build the orchestrator, reconciler and sweep from the Flask app.config."""
from flask import current_app

from donation_service.helpers.gateway_client import PaymentGatewayClient
from donation_service.helpers.notifications import NotificationDispatcher
from donation_service.helpers.orchestrator import DonationOrchestrator
from donation_service.helpers.reconciler import WebhookReconciler
from donation_service.helpers.record_store import CauseStore
from donation_service.helpers.record_store import DonationStore
from donation_service.helpers.record_store import GatewayEventStore
from donation_service.helpers.record_store import SubscriptionStore
from donation_service.helpers.sweeper import PendingRecordSweeper


def init_gateway_client( app=None ):
    """Create the gateway client from the configuration of app, or of the current app."""

    app = app or current_app
    return PaymentGatewayClient( app.config )


def build_orchestrator():
    return DonationOrchestrator(
        init_gateway_client(), DonationStore(), SubscriptionStore(), CauseStore(), current_app.config
    )


def build_reconciler():
    return WebhookReconciler(
        DonationStore(), SubscriptionStore(), CauseStore(), NotificationDispatcher(), GatewayEventStore()
    )


def build_sweeper():
    return PendingRecordSweeper(
        DonationStore(),
        SubscriptionStore(),
        build_reconciler(),
        init_gateway_client(),
        NotificationDispatcher(),
        current_app.config
    )
