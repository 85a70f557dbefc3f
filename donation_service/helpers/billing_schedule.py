"""Compute the next billing date of a recurring donation from its frequency."""
import calendar
from datetime import timedelta

from donation_service.models.subscription import ANNUALLY
from donation_service.models.subscription import MONTHLY
from donation_service.models.subscription import QUARTERLY
from donation_service.models.subscription import WEEKLY

MONTHS_BY_FREQUENCY = {
    MONTHLY: 1,
    QUARTERLY: 3,
    ANNUALLY: 12
}


def add_months( start_date, months ):
    """Move a date forward by whole months, clamping to the last day of a shorter month.

    :param date start_date: The date to move.
    :param int months: How many months.
    :return: date
    """

    month_index = start_date.month - 1 + months
    year = start_date.year + month_index // 12
    month = month_index % 12 + 1
    day = min( start_date.day, calendar.monthrange( year, month )[ 1 ] )
    return start_date.replace( year=year, month=month, day=day )


def next_billing_date( frequency, start_date ):
    """The billing date one period after start_date.

    :param str frequency: weekly, monthly, quarterly or annually.
    :param date start_date: The date of the last charge or of activation.
    :return: date, or None for an unknown frequency.
    """

    if frequency == WEEKLY:
        return start_date + timedelta( days=7 )
    if frequency in MONTHS_BY_FREQUENCY:
        return add_months( start_date, MONTHS_BY_FREQUENCY[ frequency ] )
    return None
