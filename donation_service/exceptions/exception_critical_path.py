"""Exception handlers for the reconciliation and sweep path errors.

Most of these are never raised out of the reconciler: they are built to carry a consistent message into the log, e.g.
logging.warning( ReconciliationConflictPathError( ... ).message ).
"""
# pylint: disable=too-few-public-methods


class CriticalPathError( Exception ):
    """Base class for some custom exceptions for handling critical path errors."""

    def __init__( self, errors=None, where=None, type_id=None ):
        super().__init__()
        self.errors = errors
        self.where = where
        self.type_id = type_id


class ReconciliationConflictPathError( CriticalPathError ):
    """A gateway event implies an outcome that contradicts the record's terminal state."""

    def __init__( self, type_id, event_type, state ):
        super().__init__( where=event_type, type_id=type_id )
        self.state = state
        self.message = '***** Reconciliation conflict: {} received for {} already in state {}; state kept.'\
            .format( event_type, type_id, state )


class OrphanedEventPathError( CriticalPathError ):
    """A gateway event references a record that does not exist in this deployment."""

    def __init__( self, type_id, event_type ):
        super().__init__( where=event_type, type_id=type_id )
        self.message = '***** Orphaned gateway event: {} references unknown id {}.'.format( event_type, type_id )


class GatewayEventRejectedPathError( CriticalPathError ):
    """A gateway payload could not be validated into an event."""

    def __init__( self, errors ):
        super().__init__( errors=errors )
        self.message = '***** Critical path error: gateway event rejected with errors {}.'.format( self.errors )


class GatewayEventLogPathError( CriticalPathError ):
    """The audit row for a gateway event could not be written."""

    def __init__( self, type_id ):
        super().__init__( type_id=type_id )
        self.message = '***** Critical path error: writing gateway event log for {}.'.format( self.type_id )


class NotificationDispatchPathError( CriticalPathError ):
    """A notification could not be handed to the queue."""

    def __init__( self, type_id ):
        super().__init__( type_id=type_id )
        self.message = '***** Critical path error: notification dispatch for {}.'.format( self.type_id )


class NotificationHTTPStatusError( CriticalPathError ):
    """Exception to handle HTTP status codes other than a 2xx for the notification POST request."""

    def __init__( self, status_code ):
        super().__init__()
        self.message = '***** Critical path error: notification HTTP status code error: {}.'.format( status_code )


class GatewayCorrectiveFailurePathError( CriticalPathError ):
    """The record created before a failed gateway call could not be marked failed."""

    def __init__( self, type_id ):
        super().__init__( type_id=type_id )
        self.message = '***** Critical path error: marking {} failed after a gateway error.'.format( self.type_id )


class SweepPathError( CriticalPathError ):
    """A pending record could not be checked or expired by the sweep."""

    def __init__( self, where, type_id ):
        super().__init__( where=where, type_id=type_id )
        self.message = '***** Critical path error: sweep at {} for {}.'.format( self.where, self.type_id )
