"""Read the caller's identity from an optional JWT.

Resources that accept anonymous callers are decorated with jwt_required( optional=True ): without a token these
return None and the caller is treated as an anonymous donor.
"""
from flask_jwt_extended import get_jwt
from flask_jwt_extended import get_jwt_identity


def get_current_user_id():
    """The token subject, or None for an anonymous caller."""

    identity = get_jwt_identity()
    if identity is None:
        return None
    return str( identity )


def get_current_user_email():
    """The optional email claim on the token."""

    if get_jwt_identity() is None:
        return None
    return get_jwt().get( 'email' )
