"""Donor input validation for POST /donation/donate.

The checks run in a fixed order and the first failure wins, so that a donor always sees the same message for the same
input:

    1. The amount is a number greater than zero.
    2. The amount meets the gateway minimum.
    3. The cause exists and the amount meets its minimum donation.
    4. Named donations carry a donor name and a well formed email; the message fits the length limit.
    5. Recurring donations come from a signed-in donor, use a known frequency and meet the subscription minimum.

Nothing here touches the database except the cause lookup.
"""
import re
from decimal import Decimal
from decimal import InvalidOperation

from donation_service.exceptions.exception_donation import AuthenticationRequiredError
from donation_service.exceptions.exception_donation import ValidationError
from donation_service.models.subscription import FREQUENCIES

EMAIL_PATTERN = re.compile( r'^[^\s@]+@[^\s@]+\.[^\s@]+$' )


def format_amount( amount ):
    """Render an amount for a donor facing message: 1000 rather than 1000.00, 12.50 when there are cents."""

    amount = Decimal( amount )
    if amount == amount.to_integral_value():
        return str( int( amount ) )
    return '{:.2f}'.format( amount )


def parse_amount( amount ):
    """Convert the submitted amount to a Decimal greater than zero.

    :param amount: A number or a numeric string.
    :return: Decimal
    :raises ValidationError: invalid_amount
    """

    if amount is None or isinstance( amount, bool ):
        raise ValidationError( 'invalid_amount', 'amount must be a number greater than zero' )
    try:
        parsed = Decimal( str( amount ).strip() )
    except ( InvalidOperation, ValueError ):
        raise ValidationError( 'invalid_amount', 'amount must be a number greater than zero' )
    if not parsed.is_finite() or parsed <= 0:
        raise ValidationError( 'invalid_amount', 'amount must be a number greater than zero' )
    return parsed


def validate_amount( amount, minimum_payment ):
    """Steps 1 and 2.

    :return: The parsed amount.
    """

    parsed = parse_amount( amount )
    if parsed < Decimal( str( minimum_payment ) ):
        raise ValidationError(
            'below_gateway_minimum', 'minimum payment amount is {}'.format( format_amount( minimum_payment ) )
        )
    return parsed


def validate_cause( cause, amount ):
    """Step 3: the cause has already been looked up by the caller."""

    if cause is None:
        raise ValidationError( 'cause_not_found', 'cause not found' )
    minimum_donation = cause.minimum_donation or 0
    if minimum_donation and amount < Decimal( str( minimum_donation ) ):
        raise ValidationError(
            'below_cause_minimum',
            'minimum donation for this cause is {}'.format( format_amount( minimum_donation ) )
        )


def validate_donor( donor_name, donor_email, is_anonymous, message, maximum_message_length ):
    """Step 4."""

    if not is_anonymous:
        if not donor_name or not donor_name.strip():
            raise ValidationError( 'missing_donor_name', 'donor name is required' )
        if not donor_email or not donor_email.strip():
            raise ValidationError( 'missing_donor_email', 'donor email is required' )
        if not EMAIL_PATTERN.match( donor_email.strip() ):
            raise ValidationError( 'invalid_email', 'invalid email' )

    if message and len( message ) > maximum_message_length:
        raise ValidationError(
            'message_too_long', 'message must be at most {} characters'.format( maximum_message_length )
        )


def validate_recurring( user_id, frequency, amount, minimum_subscription ):
    """Step 5. An anonymous caller gets AuthenticationRequiredError rather than a ValidationError."""

    if not user_id:
        raise AuthenticationRequiredError()
    if frequency not in FREQUENCIES:
        raise ValidationError(
            'invalid_frequency', 'frequency must be one of {}'.format( ', '.join( FREQUENCIES ) )
        )
    if amount < Decimal( str( minimum_subscription ) ):
        raise ValidationError(
            'below_subscription_minimum',
            'minimum subscription amount is {}'.format( format_amount( minimum_subscription ) )
        )
