#
# azbot/msapicall.py
#
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
'''
Provide a wrapper for Azure SDK calls.

msapicall() issues exactly one attempt. azbot does not retry;
failures are classified and logged here, then re-raised unmodified
so the caller of the top-level operation sees the SDK exception.
'''
import http.client
import logging
import time

import azure.core.exceptions
import msrestazure.azure_exceptions

from azbot.util import (elapsed,
                        getframe,
                       )

LOGGER_NAME_DEFAULT = 'azbot'

AZURE_SDK_EXCEPTIONS = (azure.core.exceptions.AzureError,
                        msrestazure.azure_exceptions.CloudError,
                       )

class Caught():
    '''
    Capture an exception. Called from the exception context.
    '''
    def __init__(self, exc):
        self.exc = exc
        self.status_code = getattr(self.exc, 'status_code', None)
        try:
            self.status_code_int = int(self.status_code)
        except Exception:
            self.status_code_int = -1
        self.error_code = None

        if getattr(exc, 'error_code', None):
            self.error_code = str(exc.error_code)
        else:
            try:
                if exc.error.code:
                    self.error_code = str(exc.error.code)
            except AttributeError:
                pass

    def __repr__(self):
        return "%s(%r, status_code=%r, error_code=%r)" % (type(self).__name__, self.exc, self.status_code, self.error_code)

    def any_code_matches(self, *args):
        '''
        Return whether any code in args (strings) matches self.error_code.
        '''
        for code in args:
            if self.error_code and (self.error_code.lower() == code.lower()):
                return True
        return False

    def is_conflict(self):
        '''
        Return whether this is a "conflict" error.
        '''
        return (self.status_code_int == http.client.CONFLICT) \
          or isinstance(self.exc, azure.core.exceptions.ResourceExistsError)

    def is_missing(self):
        '''
        Return whether this exception is caused by a missing resource
        '''
        if self.status_code_int == http.client.NOT_FOUND:
            return True
        if isinstance(self.exc, azure.core.exceptions.ResourceNotFoundError):
            return True
        return self.any_code_matches('ResourceNotFound', 'ResourceGroupNotFound', 'NotFound')

    def is_server_rejected_auth(self):
        '''
        Return whether this error is server rejected authentication
        '''
        if self.status_code_int in (http.client.UNAUTHORIZED, http.client.FORBIDDEN):
            return True
        if isinstance(self.exc, azure.core.exceptions.ClientAuthenticationError):
            return True
        return self.any_code_matches('AuthenticationFailed', 'ExpiredAuthenticationToken', 'InvalidAuthenticationToken', 'AuthorizationFailed')

    def is_throttle(self):
        '''
        Endpoint wants us to throttle
        '''
        return self.status_code_int == http.client.TOO_MANY_REQUESTS

    def is_transport(self):
        '''
        Return whether the request never got a response
        '''
        return isinstance(self.exc, (azure.core.exceptions.ServiceRequestError,
                                     azure.core.exceptions.ServiceResponseError,
                                    ))

    def reason(self):
        '''
        Bucket failure reasons into a human-readable string.
        '''
        for checker in ('is_server_rejected_auth',
                        'is_missing',
                        'is_transport',
                        'is_throttle',
                        'is_conflict',
                       ):
            proc = getattr(self, checker)
            if proc():
                return checker
        return None

def msapicall(logger, op, *args, **kwargs):
    '''
    execute op(*args, **kwargs) and return the result.
    SDK errors are logged and re-raised as-is.
    '''
    logger = logger if logger is not None else logging.getLogger(LOGGER_NAME_DEFAULT)
    t0 = time.time()
    try:
        ret = op(*args, **kwargs)
    except AZURE_SDK_EXCEPTIONS as exc:
        caught = Caught(exc)
        logger.warning("%s op=%r failed after %.3fs [%s] %r", getframe(1), op, elapsed(t0), caught.reason() or 'other', exc)
        raise
    logger.debug("%s op=%r complete in %.3fs", getframe(1), op, elapsed(t0))
    return ret
