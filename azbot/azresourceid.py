#
# azbot/azresourceid.py
#
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
'''
Support for pulling fields out of Azure Resource IDs.

Resource IDs look like:
    /subscriptions/11111111-1111-1111-1111-111111111111/resourceGroups/some-rg/providers/Microsoft.Compute/virtualMachines/some-vm

These helpers never raise for str input. A field that cannot
be found is returned as None, which callers treat as "unknown".
'''

# Exact (case-sensitive) segment that precedes the resource group name.
RESOURCE_GROUPS_TOKEN = 'resourceGroups'

def resource_id_tokens(resource_id):
    '''
    Return resource_id split on '/'.
    None and the empty string produce an empty list.
    '''
    if not resource_id:
        return list()
    if not isinstance(resource_id, str):
        raise TypeError("resource_id must be str, not %s" % type(resource_id).__name__)
    return resource_id.split('/')

def resource_group_extract(resource_id):
    '''
    Return the segment that immediately follows the first
    RESOURCE_GROUPS_TOKEN segment in resource_id.
    Return None if there is no such segment.
    '''
    toks = resource_id_tokens(resource_id)
    try:
        idx = toks.index(RESOURCE_GROUPS_TOKEN)
    except ValueError:
        return None
    try:
        return toks[idx+1] or None
    except IndexError:
        return None

def resource_name_extract(resource_id):
    '''
    Return the last non-empty segment of resource_id, or None.
    '''
    toks = [x for x in resource_id_tokens(resource_id) if x]
    if not toks:
        return None
    return toks[-1]
