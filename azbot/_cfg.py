#
# azbot/_cfg.py
#
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
'''
"cfg" manages misc settings read from the optional config file.
The file is YAML. Its path comes from the environment variable
named by azbot.base_defaults.CONFIG_PATH_ENV. When that is unset,
every value falls back to the caller-provided default.

Example:
    fanout_max_outstanding: 4
    cloud_name: AzureUSGovernment
    log_level: debug
'''
import os
import threading

import yaml

import azbot.base_defaults
from azbot.btypes import ReadOnlyDict
import azbot.clouds
from azbot.exceptions import ConfigError
import azbot.util

class _Cfg():
    '''
    Manage cfg values
    '''
    def __init__(self):
        self._vlock = threading.RLock()
        self._vfilename = None
        self._vdata = None

        # Hook for unit testing. Do not use this in production.
        self.test_values = dict()

    def reset(self):
        '''
        Discard cached data. Useful for unit testing.
        '''
        with self._vlock:
            self._vfilename = None
            self._vdata = None
            self.test_values = dict()

    @staticmethod
    def filename_get():
        '''
        Return the config file path, or '' if none is configured
        '''
        return os.environ.get(azbot.base_defaults.CONFIG_PATH_ENV, '')

    def _load_iff_necessary(self):
        '''
        Load data iff not already loaded
        '''
        with self._vlock:
            if self._vdata is None:
                filename = self.filename_get()
                data = self._data_load(filename)
                self._vdata = self._data_validate(data, filename)
                self._vfilename = filename

    @staticmethod
    def _data_load(filename):
        '''
        Return the contents of filename as a dict.
        '''
        if not filename:
            return dict()
        try:
            with open(filename, 'r') as f:
                data = yaml.safe_load(f)
        except FileNotFoundError as exc:
            raise ConfigError("config file not found", filename=filename) from exc
        except yaml.YAMLError as exc:
            raise ConfigError("cannot parse config: %s" % exc, filename=filename) from exc
        if data is None:
            return dict()
        if not isinstance(data, dict):
            raise ConfigError("expected a mapping at top level, not %s" % type(data).__name__, filename=filename)
        return data

    def _data_validate(self, data, filename):
        '''
        data is a dict as loaded from the config.
        Validate the contents and return them.
        Keys with a _dh__<key> handler are validated by the handler;
        other keys must be bool, int, or str.
        '''
        ret = dict()
        for k, v in data.items():
            if not self._key_valid(k):
                raise ConfigError("invalid key %r" % k, filename=filename)
            handler = getattr(self, f'_dh__{k}', None)
            if handler:
                ret[k] = handler(v, k, filename)
            elif isinstance(v, (bool, int, str)):
                ret[k] = v
            else:
                raise ConfigError("%s has unexpected type %s" % (k, type(v).__name__), filename=filename)
        return ReadOnlyDict(ret)

    @staticmethod
    def _dh__fanout_max_outstanding(value, key, filename):
        '''
        Validate fanout_max_outstanding as a positive int
        '''
        if isinstance(value, bool) or (not isinstance(value, int)) or (value <= 0):
            raise ConfigError("%s must be a positive integer, not %r" % (key, value), filename=filename)
        return value

    @staticmethod
    def _dh__cloud_name(value, key, filename):
        '''
        Validate cloud_name as a known cloud
        '''
        azbot.clouds.cloud_get(value, exc_value=lambda txt: ConfigError("%s: %s" % (key, txt), filename=filename))
        return value

    @staticmethod
    def _dh__log_level(value, key, filename):
        '''
        Validate log_level
        '''
        try:
            azbot.util.log_level_normalize(value)
        except (TypeError, ValueError) as exc:
            raise ConfigError("%s: %s" % (key, exc), filename=filename) from exc
        return value

    @staticmethod
    def _key_valid(name):
        '''
        Return whether the given name is valid as a config key
        '''
        if not isinstance(name, str):
            return False
        if not name:
            return False
        if name.startswith('_'):
            return False
        return True

    def to_dict(self) -> dict:
        '''
        Return cfg contents in dict form
        '''
        with self._vlock:
            self._load_iff_necessary()
            ret = dict(self._vdata)
            ret.update(self.test_values)
            return ret

    def get(self, name, defaultvalue):
        '''
        If name is set in the config, return the corresponding value.
        If name is not set in the config, return defaultvalue.
        If name is not valid, just returns defaultvalue.
        '''
        if not self._key_valid(name):
            return defaultvalue
        with self._vlock:
            try:
                return self.test_values[name]
            except KeyError:
                pass
            self._load_iff_necessary()
            return self._vdata.get(name, defaultvalue)

cfg = _Cfg()
