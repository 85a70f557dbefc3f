"""The following module resolves donations and subscriptions left pending by donors who never finished paying.

It is run on a schedule, hourly in production, from the project root:

python -c "import jobs.pending_sweep;jobs.pending_sweep.run_pending_sweep()"

Donations pending for more than PENDING_STATUS_CHECK_MINUTES are checked against the gateway transaction history, and
anything still pending after PENDING_EXPIRY_HOURS is expired ( donations ) or cancelled ( subscriptions ).
"""
import logging
import os

from donation_service.app import create_app
from donation_service.helpers.service_factory import build_sweeper

# Check for how the application is being run and use that.
# The environment variable is set in the Dockerfile.
app_config_env = os.environ.get( 'APP_ENV', 'DEFAULT' )  # pylint: disable=invalid-name

logging.debug( '***** app.config[ ENV ]: %s', app_config_env )

app = create_app( app_config_env )  # pylint: disable=C0103


def run_pending_sweep():
    """Run one sweep inside the application context.

    :return: The sweep summary.
    """

    with app.app_context():
        summary = build_sweeper().run()
    logging.info( '***** Pending sweep finished: %s', summary )
    return summary
