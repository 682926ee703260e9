#
# azbot/base_defaults.py
#
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
'''
Default settings that are not loaded from any configuration.
To keep dependencies simple, use only Python built-in types here.
'''
# Name of the environment variable that points at the optional config file.
CONFIG_PATH_ENV = 'AZBOT_CONFIG_PATH'

# Cloud used when nothing is configured. Must be a name known to azbot.clouds.
CLOUD_NAME_DEFAULT = 'AzureCloud'

EXC_VALUE_DEFAULT = ValueError

# Upper bound on concurrent sub-calls for one level of fan-out.
# Nested fan-out (account -> runbooks -> parameters) applies this per level.
FANOUT_MAX_OUTSTANDING_DEFAULT = 8

LOG_LEVEL_DEFAULT = 'info'

# Prefix for item expansion
PF = '  '
