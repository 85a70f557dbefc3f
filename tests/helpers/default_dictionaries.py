"""A collection of dictionary payloads for the unit tests, e.g. payloads to build the models and webhooks.

   Call the dictionary and provide it an argument for key-value pairs to be updated. If None is provided
   no key-value pairs are updated and the default dictionary is returned. So, for example, calling the
   get_donation_request_dict like:

       get_donation_request_dict( { 'amount': '10.00' } )

   will return the default dictionary with the amount updated from '2500' to '10.00'. The update()
   function at the end of the module is called to do the updating.
"""
from collections.abc import Mapping
from decimal import Decimal

CAUSE_ID = '0b7a2d5e-6a4f-4c1e-9a55-2f7d1c3b8e01'
CAUSE_WITH_MINIMUM_ID = '5c0e8f3a-91d2-4b6e-8f0a-7d4c2e1b9a02'
USER_ID = 'user-1'
USER_EMAIL = 'member@example.com'
EXTERNAL_SUBSCRIPTION_ID = 'gateway-subscription-id'


def get_cause_dict( update_key_values=None ):
    """The CauseModel dictionary.

    :param update_key_values: The key-value pairs that should be updated in the default dictionary.
    :return: Updated dictionary
    """

    cause_default = {
        'id': CAUSE_ID,
        'title': 'Community Kitchen',
        'minimum_donation': Decimal( '0.00' ),
        'amount_raised': Decimal( '0.00' )
    }
    return update( update_key_values, cause_default )


def get_donation_request_dict( update_key_values=None ):
    """The body of POST /donation/donate for a named one-time donation.

    :param update_key_values: The key-value pairs that should be updated in the default dictionary.
    :return: Updated dictionary
    """

    donation_request_default = {
        'cause_id': CAUSE_ID,
        'amount': '2500',
        'donor_name': 'Jane Donor',
        'donor_email': 'jane@example.com',
        'is_anonymous': False,
        'message': 'Keep up the good work.'
    }
    return update( update_key_values, donation_request_default )


def get_donor_info_dict( update_key_values=None ):
    """The donor_info argument of DonationOrchestrator.initiate_donation()."""

    donor_info_default = {
        'name': 'Jane Donor',
        'email': 'jane@example.com'
    }
    return update( update_key_values, donor_info_default )


def get_donation_dict( update_key_values=None ):
    """The DonationModel dictionary for a donation waiting on the gateway.

    :param update_key_values: The key-value pairs that should be updated in the default dictionary.
    :return: Updated dictionary
    """

    donation_default = {
        'id': '7f9d6c2a-3b1e-4f5a-8c7d-1e2f3a4b5c06',
        'cause_id': CAUSE_ID,
        'user_id': None,
        'amount': Decimal( '2500.00' ),
        'donor_name': 'Jane Donor',
        'donor_email': 'jane@example.com',
        'is_anonymous': False,
        'message': None,
        'state': 'payment_initiated'
    }
    return update( update_key_values, donation_default )


def get_subscription_dict( update_key_values=None ):
    """The SubscriptionModel dictionary for a monthly recurring donation waiting on activation.

    :param update_key_values: The key-value pairs that should be updated in the default dictionary.
    :return: Updated dictionary
    """

    subscription_default = {
        'id': '2d4f6a8c-1b3e-4d5f-9a7c-8e6d4c2b0a07',
        'user_id': USER_ID,
        'cause_id': CAUSE_ID,
        'amount': Decimal( '1000.00' ),
        'frequency': 'monthly',
        'subscription_type': 'recurring_donation',
        'donor_name': 'Jane Donor',
        'donor_email': 'jane@example.com',
        'is_anonymous': False,
        'state': 'pending_activation',
        'external_subscription_id': None
    }
    return update( update_key_values, subscription_default )


def get_gateway_event_dict( update_key_values=None ):
    """A canonical gateway event: a successful one-time charge.

    :param update_key_values: The key-value pairs that should be updated in the default dictionary.
    :return: Updated dictionary
    """

    gateway_event_default = {
        'event_type': 'charge.succeeded',
        'reference_id': '7f9d6c2a-3b1e-4f5a-8c7d-1e2f3a4b5c06',
        'external_id': 'TXN-0001',
        'transaction_number': 'TXN-0001',
        'amount': '2500.00',
        'description': 'Transaction is approved.'
    }
    return update( update_key_values, gateway_event_default )


def get_gateway_postback_dict( update_key_values=None ):
    """The form the gateway posts back after a one-time payment.

    :param update_key_values: The key-value pairs that should be updated in the default dictionary.
    :return: Updated dictionary
    """

    gateway_postback_default = {
        'ResponseCode': '1',
        'ResponseDescription': 'Transaction is approved.',
        'TransactionNumber': 'TXN-0001',
        'CustomOrderId': '7f9d6c2a-3b1e-4f5a-8c7d-1e2f3a4b5c06',
        'amount': '2500.00'
    }
    return update( update_key_values, gateway_postback_default )


def update( update_key_values, base_dictionary ):
    """A routine to update a possibly nested dictionary with key-value pairs.

    :param update_key_values: The key-value pairs to update in the dictionary.
    :param base_dictionary: The dictionary to update.
    :return: Updated base dictionary.
    """

    if update_key_values:
        for base_key, base_value in base_dictionary.items():
            if isinstance( base_value, Mapping ):
                if base_key in update_key_values:
                    base_dictionary[ base_key ] = update(
                        update_key_values.get( base_key, {} ), base_value )
            else:
                if base_key in update_key_values:
                    base_dictionary[ base_key ] = update_key_values[ base_key ]
        for new_key, new_value in update_key_values.items():
            if new_key not in base_dictionary:
                base_dictionary[ new_key ] = new_value

    return base_dictionary
