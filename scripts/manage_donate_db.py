"""The following script will DROP ALL tables and then CREATE ALL.

Use with caution! It will remove all existing data, and then reconstruct the tables with no entries. Other functions
can be added to manage other database tasks. To run a function navigate to the project root and, for example, on the
command line type:

python -c "import scripts.manage_donate_db;scripts.manage_donate_db.drop_all_and_create()"
python -c "import scripts.manage_donate_db;scripts.manage_donate_db.create_database_tables()"
python -c "import scripts.manage_donate_db;scripts.manage_donate_db.create_causes()"
"""
import uuid
from decimal import Decimal

from donation_service.app import create_app
from donation_service.flask_essentials import database
from donation_service.models.cause import CauseModel
from donation_service.models.donation import DonationModel  # pylint: disable=unused-import
from donation_service.models.gateway_event import GatewayEventModel  # pylint: disable=unused-import
from donation_service.models.subscription import SubscriptionModel  # pylint: disable=unused-import
from donation_service.models.subscription_charge import SubscriptionChargeModel  # pylint: disable=unused-import

app = create_app( 'DEV' )  # pylint: disable=C0103

DEV_CAUSES = [
    ( 'Community Kitchen', Decimal( '0.00' ) ),
    ( 'School Supplies Drive', Decimal( '500.00' ) ),
    ( 'Hurricane Relief', Decimal( '1000.00' ) )
]


def drop_all_and_create():
    """A function to drop and then recreate the database tables."""

    with app.app_context():
        database.reflect()
        database.drop_all()
        database.create_all()


def create_database_tables():
    """A function to create any missing tables without touching existing data."""

    with app.app_context():
        database.create_all()


def create_causes():
    """Seed a few causes with different minimum donations for local testing against the gateway sandbox."""

    with app.app_context():
        for title, minimum_donation in DEV_CAUSES:
            cause = CauseModel(
                id=str( uuid.uuid4() ),
                title=title,
                minimum_donation=minimum_donation,
                amount_raised=Decimal( '0.00' )
            )
            database.session.add( cause )
            print( '{}: {}'.format( cause.id, title ) )
        database.session.commit()
