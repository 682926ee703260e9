#
# azbot/common.py
#
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
'''
Some common Python mechanics.
'''
import inspect
import logging
import sys

from azbot._cfg import cfg
import azbot.base_defaults
from azbot.base_defaults import EXC_VALUE_DEFAULT
import azbot.util
from azbot.util import getframename

class Application():
    """
    The base class for an application object.
    This owns the logger and the conventions for argument validation.

    Child classes typically do this:
    def __init__(self, attr1=None, **kwargs):
        super().__init__(**kwargs)
        self.attr1 = attr1
        if not self.attr1:
            raise self.exc_value("invalid attr1")
    """
    def __init__(self,
                 exc_value=EXC_VALUE_DEFAULT,
                 log_level=None,
                 logger_stream=None,
                 logger=None,
                 **kwargs):
        '''
        exc_value: Raise this exception for invalid values passed to construction.
        log_level: Used to create logger if none is passed in; otherwise, ignored.
        logger_stream: Where the root handler writes when we create the logger. Default stderr.
        logger: Use this logger rather than creating one. Logging configuration
                is then left entirely to the caller.
        '''
        if kwargs:
            raise TypeError("%s: unexpected keyword arguments %s" % (type(self).__name__, ','.join(sorted(kwargs.keys()))))
        self.exc_value = exc_value
        if log_level is None:
            log_level = cfg.get('log_level', azbot.base_defaults.LOG_LEVEL_DEFAULT)
        self._log_level, self._logger = self._logger_create(log_level, logger, stream=logger_stream)

    # Child name for the logger of this class. This may be overloaded.
    # This is combined with parent names in logger_name_get().
    LOGGER_NAME = 'azbot'

    # Default log format for this class (overload in subclasses as necessary)
    LOG_FORMAT = "%(asctime)s %(levelname).3s %(message)s"

    LOG_LEVEL_PYTEST = '' # pytest patches this

    @property
    def logger(self):
        '''
        Getter
        '''
        return self._logger

    @logger.setter
    def logger(self, logger):
        '''
        Setter
        '''
        self._logger = logger

    @property
    def log_level(self):
        '''
        Getter
        '''
        return self._log_level

    @classmethod
    def logger_name_get(cls):
        '''
        Compute the logger name to use for this class.
        '''
        nc = list()
        prev = None
        for k in reversed(inspect.getmro(cls)):
            logger_name = getattr(k, 'LOGGER_NAME', '')
            if logger_name and (logger_name is not prev):
                nc.append(logger_name)
                prev = logger_name
        return '.'.join(nc)

    @classmethod
    def _logger_create(cls, log_level, logger, stream=None):
        '''
        Return (log_level, logger) to use in the caller context.
        When logger is provided, it is used as-is and logging
        is not configured here.
        '''
        log_level = azbot.util.log_level_normalize(log_level if log_level is not None else azbot.base_defaults.LOG_LEVEL_DEFAULT)
        if cls.LOG_LEVEL_PYTEST:
            log_level = min(azbot.util.log_level_normalize(cls.LOG_LEVEL_PYTEST), log_level)
        if logger is not None:
            return log_level, logger
        # No-op when the root logger already has handlers.
        logging.basicConfig(format=cls.LOG_FORMAT, stream=stream if stream is not None else sys.stderr)
        logger = logging.getLogger(name=cls.logger_name_get())
        cls._logging_adjust_other_loggers() # Do this after getting our logger so we've created at least one non-root logger before this one
        logger.setLevel(log_level)
        return log_level, logger

    @classmethod
    def _logging_adjust_other_loggers(cls):
        '''
        Adjust log levels in known-noisy loggers. Azure SDKs, I'm looking at you.
        '''
        sup = (('azure.core.pipeline.policies.http_logging_policy', logging.WARNING),
               ('azure.identity', logging.ERROR),
              )
        for logger_name, log_level in sup:
            logger = logging.getLogger(name=logger_name)
            logger.setLevel(log_level)

    @classmethod
    def mth(cls):
        '''
        Return a string "ClassName.method_name" for the caller
        '''
        return "%s.%s" % (cls.__name__, getframename(1))
