"""Helper to hand donation and subscription state changes to the notification service.

The reconciler and the sweep call NotificationDispatcher.dispatch() after their transaction has been committed. The
dispatcher only puts a job on the notifications queue: delivery happens in an RQ worker, e.g.

    flask rq worker notifications

and whatever goes wrong while queueing is logged and dropped so that the webhook acknowledgement never depends on it.
"""
import logging
from datetime import datetime

import requests
from flask import current_app
from flask_api import status

from donation_service.exceptions.exception_critical_path import NotificationDispatchPathError
from donation_service.exceptions.exception_critical_path import NotificationHTTPStatusError
from donation_service.flask_essentials import redis_queue

RECORD_TYPE_DONATION = 'donation'
RECORD_TYPE_SUBSCRIPTION = 'subscription'


@redis_queue.job( 'notifications' )
def send_notification( payload ):
    """The notification POST request, run by the RQ worker.

    :param dict payload: The state change.
    :return: True on a 2xx response.
    :raises NotificationHTTPStatusError: Any other response.
    """

    notification_url = current_app.config[ 'NOTIFICATION_URL' ]
    headers = {
        'content-type': 'application/json',
        'X-Service-Auth': current_app.config.get( 'NOTIFICATION_API_KEY', '' )
    }

    response = requests.post(
        notification_url,
        json=payload,
        headers=headers,
        timeout=current_app.config.get( 'GATEWAY_TIMEOUT_SECONDS', 30 )
    )
    logging.debug( 'notification send url: %s', response.url )
    if not status.is_success( response.status_code ):
        raise NotificationHTTPStatusError( response.status_code )
    return True


class NotificationDispatcher:
    """Fire-and-forget "state changed" events."""

    def dispatch( self, record_type, record_id, state, **details ):
        """Queue one notification.

        :param str record_type: donation or subscription.
        :param str record_id: The local record ID.
        :param str state: The state the record moved to.
        :param details: Extra keys for the payload, e.g. amount and cause_id.
        :return: The RQ job, or None when it could not be queued.
        """

        payload = {
            'record_type': record_type,
            'record_id': str( record_id ),
            'state': state,
            'occurred_at': datetime.utcnow().strftime( '%Y-%m-%d %H:%M:%S' )
        }
        for key, value in details.items():
            payload[ key ] = str( value ) if value is not None else None

        try:
            job = send_notification.queue( payload )
        except Exception:  # pylint: disable=broad-except
            logging.exception( NotificationDispatchPathError( record_id ).message )
            return None

        logging.debug( 'NOTIFICATION QUEUED: %s %s -> %s', record_type, record_id, state )
        return job
