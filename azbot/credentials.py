#
# azbot/credentials.py
#
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
'''
Credential objects for SDK clients.

azbot does not authenticate. Callers hand us a bearer token they
already hold; this adapts it to the azure.core TokenCredential
protocol so the management SDKs can use it.
'''
import time

from azure.core.credentials import AccessToken

class BearerTokenCredential():
    '''
    azure.core TokenCredential that always returns the same token.
    expires_on is seconds since the epoch. When the caller does not
    know it, we claim the token is good for TOKEN_LIFETIME_ASSUMED
    seconds from construction so the SDK does not keep asking.
    '''
    TOKEN_LIFETIME_ASSUMED = 3600

    def __init__(self, access_token, expires_on=None):
        if not (isinstance(access_token, str) and access_token):
            raise ValueError("access_token must be a non-empty str")
        self._access_token = access_token
        self._expires_on = int(expires_on) if expires_on is not None else int(time.time()) + self.TOKEN_LIFETIME_ASSUMED

    def __repr__(self):
        # Never show the token itself.
        return "<%s,expires_on=%r>" % (type(self).__name__, self._expires_on)

    def get_token(self, *scopes, **kwargs) -> AccessToken: # pylint: disable=unused-argument
        '''
        See azure.core.credentials.TokenCredential
        '''
        return AccessToken(self._access_token, self._expires_on)

    def close(self):
        '''
        Nothing to release
        '''

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
