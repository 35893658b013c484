#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import json
import logging
import sys

import yaml

DEFAULT_LOG_FORMAT = '[%(asctime).19s] [%(name)s] [%(levelname)s] %(message)s'


class RobustFileHandler(logging.FileHandler):
    """FileHandler that gracefully handles flush errors on Windows"""

    def flush(self):
        """Flush the stream, ignoring EINVAL from a stale Windows file handle"""
        try:
            super().flush()
        except OSError as e:
            if e.errno != 22:  # EINVAL
                raise


def configure_logger(logger,
                     log_file=None,
                     log_format=None,
                     log_level=logging.INFO):
    """Configure a logger with a file or stream handler

    Args:
        logger: Logger instance or logger name string
        log_file: File path string or file-like object (None for stderr)
        log_format: Format string for log messages
        log_level: Logging level (e.g., logging.INFO, logging.DEBUG)

    Returns:
        Configured logger instance
    """
    if isinstance(log_file, str):
        handler = RobustFileHandler(
            log_file,
            mode='a',
            encoding='utf-8',
            errors='replace'
        )
    else:
        handler = logging.StreamHandler(log_file)  # Default to stderr if None

    formatter = logging.Formatter(log_format or DEFAULT_LOG_FORMAT)

    if isinstance(logger, str):
        logger = logging.getLogger(logger)

    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(log_level)

    return logger


def load_config_file(config_file):
    """Load a JSON or YAML configuration file

    Args:
        config_file: Path to the file; .yaml/.yml is read as YAML, anything else as JSON

    Returns:
        Configuration dictionary (empty for an empty YAML file)

    Raises:
        OSError: If the file cannot be read
        ValueError: If the file is not valid JSON/YAML or not a mapping
    """
    with open(config_file, 'r', encoding='utf-8') as fp:
        if config_file.endswith(('.yaml', '.yml')):
            try:
                conf = yaml.safe_load(fp)
            except yaml.YAMLError as e:
                raise ValueError(f'Invalid YAML in {config_file}: {e}') from e
        else:
            try:
                conf = json.load(fp)
            except json.JSONDecodeError as e:
                raise ValueError(f'Invalid JSON in {config_file}: {e}') from e

    if conf is None:
        return {}
    if not isinstance(conf, dict):
        raise ValueError(f'{config_file} must contain a mapping at the top level')
    return conf


def get_config(config_file=None):
    """Load configuration and set up logging

    Args:
        config_file: Path to the config file; defaults to the single command line argument

    Returns:
        Tuple of (conf, plugin_conf) where:
            conf: Full configuration dictionary from config file
            plugin_conf: The "trivia" section passed to the plugin

    Exits:
        Exits with status 1 if no config file is given or it cannot be loaded
    """
    if config_file is None:
        if len(sys.argv) != 2:
            print('usage: %s <config file>' % sys.argv[0], file=sys.stderr)
            sys.exit(1)
        config_file = sys.argv[1]

    try:
        conf = load_config_file(config_file)
    except (OSError, ValueError) as e:
        print(f'ERROR: cannot load config: {e}', file=sys.stderr)
        sys.exit(1)

    # Parse log level from string to logging constant
    log_level_str = str(conf.get('log_level', 'info'))
    log_level = getattr(logging, log_level_str.upper(), logging.INFO)

    logging.basicConfig(level=log_level, format=DEFAULT_LOG_FORMAT)

    if conf.get('log_file'):
        configure_logger(logging.getLogger(), conf['log_file'], log_level=log_level)

    plugin_conf = conf.get('trivia') or {}
    return conf, plugin_conf
