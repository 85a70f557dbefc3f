"""Create instantiations of SQLAlchemy, RQ and the JWT manager: keeps a single session across models and schemas."""
from flask_jwt_extended import JWTManager
from flask_rq2 import RQ
from flask_sqlalchemy import SQLAlchemy

database = SQLAlchemy()  # pylint: disable=invalid-name
redis_queue = RQ()  # pylint: disable=invalid-name
jwt = JWTManager()  # pylint: disable=invalid-name
