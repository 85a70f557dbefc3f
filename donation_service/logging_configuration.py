"""The logging configuration for the application."""

LOG_FORMAT = '%(levelname)-5s [%(filename)s:%(funcName)s:%(lineno)d] %(message)s'


def get_logging_configuration( wsgi_level, gunicorn_level, gunicorn=False, error_log_file='errors.log' ):
    """Return a dictionary for logging.config.dictConfig().

    Everything goes to stdout through the wsgi handler. The RQ worker logs at the application level so that
    notification jobs show up next to the webhook that queued them, and the SQLAlchemy engine is kept at WARNING
    unless the application itself logs at DEBUG.

    :param str wsgi_level: Level for the root, wsgi and rq.worker loggers.
    :param str gunicorn_level: Level for the gunicorn.error logger.
    :param bool gunicorn: Whether the application is running under gunicorn: adds the gunicorn.error file handler.
    :param str error_log_file: The file the gunicorn.error handler writes to.
    :return: The configuration dictionary.
    """

    sql_level = 'INFO' if wsgi_level == 'DEBUG' else 'WARNING'

    handlers = {
        'wsgi': { 'class': 'logging.StreamHandler', 'stream': 'ext://sys.stdout', 'formatter': 'default' }
    }
    loggers = {
        'wsgi': { 'level': wsgi_level, 'propagate': False, 'handlers': [ 'wsgi' ] },
        'rq.worker': { 'level': wsgi_level, 'propagate': False, 'handlers': [ 'wsgi' ] },
        'sqlalchemy.engine': { 'level': sql_level, 'propagate': True }
    }
    root_handlers = [ 'wsgi' ]

    if gunicorn:
        handlers[ 'gunicorn.error' ] = {
            'class': 'logging.FileHandler', 'filename': error_log_file, 'formatter': 'default', 'delay': True
        }
        loggers[ 'gunicorn.error' ] = { 'level': gunicorn_level, 'propagate': False, 'handlers': [ 'gunicorn.error' ] }
        root_handlers.append( 'gunicorn.error' )

    return {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': { 'default': { 'format': LOG_FORMAT } },
        'handlers': handlers,
        'loggers': loggers,
        'root': { 'level': wsgi_level, 'handlers': root_handlers }
    }
