"""A configuration loader that augments the Flask app.config() with YAML files and tagged environment variables.

The YAML file has one section per environment, e.g. DEFAULT, DEV, TEST and PROD. The DEFAULT section is always loaded
first and the section for the requested environment is laid over it. Environment variables then override any key
that already exists in the configuration, either as the plain key or tagged with the environment name:

    SQLALCHEMY_DATABASE_URI=...          overrides the key in every environment.
    PROD_SQLALCHEMY_DATABASE_URI=...     overrides the key only when APP_ENV=PROD.

Values read from the environment are parsed as YAML scalars so that '30', 'true' and '1000.00' keep their types.
"""
import logging
import os

import yaml

DEFAULT_SECTION = 'DEFAULT'


class ConfigLoader( dict ):
    """A dictionary of configuration values that can be handed to app.config.update()."""

    def update_from_yaml_file( self, file_path, app_config_env=DEFAULT_SECTION ):
        """Load the DEFAULT section of the YAML file and then the section for the environment.

        :param str file_path: Path to the YAML configuration file.
        :param str app_config_env: The environment section to lay over the defaults.
        :return: The loader, for chaining.
        """

        with open( file_path, 'r', encoding='utf-8' ) as yaml_file:
            sections = yaml.safe_load( yaml_file ) or {}

        self.update( sections.get( DEFAULT_SECTION, {} ) or {} )
        if app_config_env != DEFAULT_SECTION:
            if app_config_env not in sections:
                logging.warning( 'Configuration section %s not found in %s.', app_config_env, file_path )
            self.update( sections.get( app_config_env, {} ) or {} )

        return self

    def update_from_env_variables( self, app_config_env=DEFAULT_SECTION ):
        """Override existing keys from plain and environment-tagged environment variables.

        :param str app_config_env: The environment name used as the tag prefix.
        :return: The loader, for chaining.
        """

        for key in list( self.keys() ):
            if key in os.environ:
                self[ key ] = parse_environment_value( os.environ[ key ] )
            tagged_key = '{}_{}'.format( app_config_env, key )
            if tagged_key in os.environ:
                self[ key ] = parse_environment_value( os.environ[ tagged_key ] )

        return self


def parse_environment_value( value ):
    """Parse an environment variable value as a YAML scalar and fall back to the raw string.

    :param str value: The raw environment variable value.
    :return: The typed value.
    """

    try:
        parsed = yaml.safe_load( value )
    except yaml.YAMLError:
        return value
    if isinstance( parsed, ( dict, list ) ) or parsed is None:
        return value
    return parsed
