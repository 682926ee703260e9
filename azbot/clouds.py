#
# azbot/clouds.py
#
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
'''
Wrappers to manage fetching msrestazure.azure_cloud.Cloud objects
and the ARM endpoints that management clients need.
'''
import inspect

import msrestazure.azure_cloud

import azbot.base_defaults

_CLOUDS = {tup[1].name : tup[1] for tup in inspect.getmembers(msrestazure.azure_cloud) if isinstance(tup[1], msrestazure.azure_cloud.Cloud)}

# Some tooling reports the public cloud as AzurePublicCloud
_CLOUDS['AzurePublicCloud'] = msrestazure.azure_cloud.AZURE_PUBLIC_CLOUD

_CLOUDS_LOWER = {k.lower() : v for k, v in _CLOUDS.items()}

def cloud_names():
    '''
    Return a sorted list of known cloud names
    '''
    return sorted(_CLOUDS.keys())

def cloud_get(name, exc_value=azbot.base_defaults.EXC_VALUE_DEFAULT):
    '''
    Return the named cloud object
    '''
    try:
        return _CLOUDS_LOWER[name.lower()]
    except (AttributeError, KeyError) as exc:
        raise exc_value("unknown cloud %r (known: %s)" % (name, ",".join(cloud_names()))) from exc

def resource_manager_url(cloud) -> str:
    '''
    Return the ARM base URL for cloud without a trailing slash
    '''
    return cloud.endpoints.resource_manager.rstrip('/')

def resource_manager_scopes(cloud) -> list:
    '''
    Return the credential scopes for ARM calls in cloud
    '''
    return [resource_manager_url(cloud) + '/.default']
