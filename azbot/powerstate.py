#
# azbot/powerstate.py
#
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
'''
Normalize VM power-state status codes.

The compute instance view reports a list of statuses. One of them
has a code of the form 'PowerState/<state>'. Nothing here raises;
malformed, missing, and not-yet-known codes all become PowerState.UNKNOWN.
'''
from azbot.btypes import PowerState

POWER_STATE_CODE_PREFIX = 'powerstate/'

def power_state_normalize(code) -> PowerState:
    '''
    Map a raw code such as 'PowerState/running' to PowerState.
    '''
    if not (isinstance(code, str) and code):
        return PowerState.UNKNOWN
    toks = code.split('/')
    if len(toks) != 2:
        return PowerState.UNKNOWN
    return PowerState.revmap_lower().get(toks[1].lower(), PowerState.UNKNOWN)

def power_state_code_select(statuses):
    '''
    statuses is a list of objects with a 'code' attribute
    (azure.mgmt.compute.models.InstanceViewStatus).
    Return the code of the first one that is a power-state code, or None.
    '''
    for status in statuses or list():
        code = getattr(status, 'code', None)
        if isinstance(code, str) and code.lower().startswith(POWER_STATE_CODE_PREFIX):
            return code
    return None

def power_state_from_statuses(statuses) -> PowerState:
    '''
    Return the normalized power state found in statuses.
    '''
    return power_state_normalize(power_state_code_select(statuses))
