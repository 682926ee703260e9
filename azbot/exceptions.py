#
# azbot/exceptions.py
#
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
'''
Exception classes shared across azbot modules
'''

class ApplicationException(Exception):
    '''
    Base class for application exceptions
    '''

class ConfigError(ApplicationException):
    '''
    The config file contents do not validate.
    '''
    def __init__(self, txt, filename=None):
        super().__init__(txt)
        self.txt = txt
        self.filename = filename

    def __repr__(self):
        return "%s(%r, filename=%r)" % (type(self).__name__, self.txt, self.filename)

    def __str__(self):
        if self.filename:
            return "%s: %s" % (self.filename, self.txt)
        return self.txt
