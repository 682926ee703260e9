#
# azbot/models.py
#
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
'''
Value objects returned by azbot.repository.AzureRepository.

These are constructed fresh for each call and are never updated.
Child collections are stored as tuples and are fully populated
before the parent is constructed.
'''
import enum

from azbot.btypes import (PowerState,
                          ReadOnlyObject,
                         )

def _dictify(value):
    '''
    Helper for to_dict()
    '''
    if isinstance(value, ReadOnlyObject):
        return value.to_dict()
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (list, tuple)):
        return [_dictify(x) for x in value]
    return value

class _Model(ReadOnlyObject):
    '''
    Common operations for azbot value objects
    '''
    __slots__ = ()

    def to_dict(self) -> dict:
        '''
        Return a dict of plain values suitable for json.dumps()
        '''
        return {k : _dictify(getattr(self, k)) for k in self.__slots__}

class Subscription(_Model):
    '''
    One subscription visible to the caller's credential
    '''
    __slots__ = ('subscription_id',
                 'display_name',
                )

    def __init__(self, subscription_id, display_name):
        self._ro_init(subscription_id=subscription_id,
                      display_name=display_name)

class VirtualMachine(_Model):
    '''
    A VM with its derived power state.
    resource_group is None when the VM id has no resourceGroups segment.
    '''
    __slots__ = ('subscription_id',
                 'resource_group',
                 'name',
                 'power_state',
                )

    def __init__(self, subscription_id, resource_group, name, power_state=PowerState.UNKNOWN):
        self._ro_init(subscription_id=subscription_id,
                      resource_group=resource_group,
                      name=name,
                      power_state=PowerState(power_state) if power_state is not None else PowerState.UNKNOWN)

class RunbookParameter(_Model):
    '''
    One declared parameter of a runbook
    '''
    __slots__ = ('parameter_name',
                 'default_value',
                 'is_mandatory',
                 'position',
                 'type',
                )

    def __init__(self, parameter_name, default_value=None, is_mandatory=False, position=None, type=None): # pylint: disable=redefined-builtin
        self._ro_init(parameter_name=parameter_name,
                      default_value=default_value,
                      is_mandatory=bool(is_mandatory),
                      position=position,
                      type=type)

class Runbook(_Model):
    '''
    A runbook and its parameters
    '''
    __slots__ = ('runbook_id',
                 'runbook_name',
                 'runbook_parameters',
                )

    def __init__(self, runbook_id, runbook_name, runbook_parameters=()):
        self._ro_init(runbook_id=runbook_id,
                      runbook_name=runbook_name,
                      runbook_parameters=tuple(runbook_parameters))

class AutomationAccount(_Model):
    '''
    An automation account and its runbooks
    '''
    __slots__ = ('subscription_id',
                 'resource_group',
                 'automation_account_id',
                 'automation_account_name',
                 'runbooks',
                )

    def __init__(self, subscription_id, resource_group, automation_account_id, automation_account_name, runbooks=()):
        self._ro_init(subscription_id=subscription_id,
                      resource_group=resource_group,
                      automation_account_id=automation_account_id,
                      automation_account_name=automation_account_name,
                      runbooks=tuple(runbooks))
