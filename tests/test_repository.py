#
# tests/test_repository.py
#
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
'''
AzureRepository operations against FakeResourceClient
'''
import threading

from azure.core.exceptions import (HttpResponseError,
                                   ResourceNotFoundError,
                                  )
import pytest

from azbot.btypes import PowerState
from azbot.clients import AzureResourceClient
from azbot.models import (AutomationAccount,
                          Runbook,
                          RunbookParameter,
                          Subscription,
                          VirtualMachine,
                         )
from azbot.repository import AzureRepository
from conftest import (FakeResourceClient,
                      account_id,
                      ns,
                      vm_id,
                     )

TOKEN = 'tok'
SUB = 'abc-sub'

def _all_closed(world):
    return bool(world.clients) and all(client.closed for client in world.clients)

def _factory(world, access_token, subscription_id, logger=None):
    client = FakeResourceClient(world, access_token, subscription_id=subscription_id, logger=logger)
    with world.lock:
        world.clients.append(client)
    return client

######################################################################
# construction

def test_construct_defaults():
    '''
    defaults come from base_defaults
    '''
    repository = AzureRepository()
    assert repository.fanout_max_outstanding == 8
    assert repository.cloud.name == 'AzureCloud'
    assert repository.logger.name == 'azbot.repository'

@pytest.mark.parametrize('value', [0, -1, True, 'many', 1.5])
def test_construct_bad_fanout(value):
    '''
    fanout_max_outstanding must be a positive int
    '''
    with pytest.raises(ValueError):
        AzureRepository(fanout_max_outstanding=value)

def test_construct_bad_kwarg():
    '''
    unexpected keyword arguments are rejected
    '''
    with pytest.raises(TypeError):
        AzureRepository(max_threads=4)

def test_default_client_factory():
    '''
    default clients are AzureResourceClient scoped to the token and subscription
    '''
    repository = AzureRepository(cloud_name='AzureUSGovernment')
    with repository.client_get(TOKEN, SUB) as client:
        assert isinstance(client, AzureResourceClient)
        assert client.subscription_id == SUB
        assert client.cloud.name == 'AzureUSGovernment'
        assert client.credential.get_token().token == TOKEN

def test_client_get_requires_token(repository):
    '''
    empty token is rejected before any client is built
    '''
    with pytest.raises(ValueError):
        repository.client_get('', SUB)

######################################################################
# subscriptions

def test_list_subscriptions(repository, world):
    '''
    one Subscription per listed subscription
    '''
    world.subscriptions = [ns(subscription_id='s1', display_name='One'),
                           ns(subscription_id='s2', display_name='Two')]
    assert repository.list_subscriptions(TOKEN) == [Subscription('s1', 'One'), Subscription('s2', 'Two')]
    assert world.clients[0].subscription_id is None
    assert world.clients[0].access_token == TOKEN
    assert _all_closed(world)

def test_list_subscriptions_empty(repository, world):
    '''
    no subscriptions
    '''
    assert repository.list_subscriptions(TOKEN) == list()
    assert _all_closed(world)

######################################################################
# virtual machines

def _statuses(*codes):
    return [ns(code=code) for code in codes]

def test_list_virtual_machines(repository, world):
    '''
    resource group from the id, power state from the instance view
    '''
    world.vms = [ns(id='/subscriptions/abc/resourceGroups/rg1/providers/Microsoft.Compute/virtualMachines/vmA', name='vmA'),
                 ns(id=vm_id('abc', 'rg2', 'vmB'), name='vmB'),
                 ns(id='/subscriptions/abc/providers/Microsoft.Compute/virtualMachines/vmC', name='vmC'),
                ]
    world.instance_views = {'vmA' : _statuses('ProvisioningState/succeeded', 'PowerState/stopped'),
                            'vmB' : _statuses('PowerState/running'),
                            'vmC' : _statuses('ProvisioningState/succeeded'),
                           }
    vms = repository.list_virtual_machines(TOKEN, SUB)
    assert vms == [VirtualMachine(SUB, 'rg1', 'vmA', PowerState.STOPPED),
                   VirtualMachine(SUB, 'rg2', 'vmB', PowerState.RUNNING),
                   VirtualMachine(SUB, None, 'vmC', PowerState.UNKNOWN),
                  ]
    assert sorted(world.calls_of('vm_instance_view_get')) == [('vmA', 'rg1'), ('vmB', 'rg2'), ('vmC', None)]
    assert len(world.clients) == 1
    assert world.clients[0].subscription_id == SUB
    assert _all_closed(world)

def test_list_virtual_machines_empty(repository, world):
    '''
    empty subscription; no enrichment calls
    '''
    assert repository.list_virtual_machines(TOKEN, SUB) == list()
    assert not world.calls_of('vm_instance_view_get')
    assert _all_closed(world)

def test_list_virtual_machines_enrichment_failure(repository, world):
    '''
    one failed instance view fails the whole list with the original exception
    '''
    world.vms = [ns(id=vm_id('abc', 'rg1', f"vm{x}"), name=f"vm{x}") for x in range(5)]
    exc = ResourceNotFoundError('vm2 is gone')
    world.failures[('vm_instance_view_get', 'vm2')] = exc
    with pytest.raises(ResourceNotFoundError) as exc_info:
        repository.list_virtual_machines(TOKEN, SUB)
    assert exc_info.value is exc
    assert len(world.calls_of('vm_instance_view_get')) == 5
    assert _all_closed(world)

def test_list_virtual_machines_list_failure(repository, world):
    '''
    a failed list call propagates and the client is still closed
    '''
    world.failures[('vm_list', None)] = HttpResponseError('denied')
    with pytest.raises(HttpResponseError):
        repository.list_virtual_machines(TOKEN, SUB)
    assert _all_closed(world)

def test_list_virtual_machines_outcomes(repository, world):
    '''
    per-VM outcomes isolate failures
    '''
    world.vms = [ns(id=vm_id('abc', 'rg1', 'vmA'), name='vmA'),
                 ns(id=vm_id('abc', 'rg1', 'vmB'), name='vmB')]
    world.instance_views = {'vmA' : _statuses('PowerState/deallocated')}
    world.failures[('vm_instance_view_get', 'vmB')] = ResourceNotFoundError('gone')
    outcomes = repository.list_virtual_machines_outcomes(TOKEN, SUB)
    assert [cr.name for cr in outcomes] == ['vm[0]:vmA', 'vm[1]:vmB']
    assert outcomes[0].result == VirtualMachine(SUB, 'rg1', 'vmA', PowerState.DEALLOCATED)
    assert isinstance(outcomes[1].exc, ResourceNotFoundError)
    assert outcomes[1].result is None
    assert _all_closed(world)

def test_list_virtual_machines_bounded(world):
    '''
    fan-out respects fanout_max_outstanding
    '''
    world.vms = [ns(id=vm_id('abc', 'rg1', f"vm{x}"), name=f"vm{x}") for x in range(20)]
    repository = AzureRepository(client_factory=lambda *args, **kwargs: _factory(world, *args, **kwargs), fanout_max_outstanding=1)
    vms = repository.list_virtual_machines(TOKEN, SUB)
    assert [vm.name for vm in vms] == [f"vm{x}" for x in range(20)]
    # one at a time means instance views are fetched in input order
    assert [c[0] for c in world.calls_of('vm_instance_view_get')] == [f"vm{x}" for x in range(20)]

def test_list_virtual_machines_concurrent(repository, world):
    '''
    instance views for sibling VMs are fetched at the same time
    '''
    world.vms = [ns(id=vm_id('abc', 'rg1', f"vm{x}"), name=f"vm{x}") for x in range(4)]
    world.barriers['vm_instance_view_get'] = threading.Barrier(4, timeout=10)
    vms = repository.list_virtual_machines(TOKEN, SUB)
    assert [vm.name for vm in vms] == [f"vm{x}" for x in range(4)]
    assert _all_closed(world)

def test_list_virtual_machines_concurrent_up_to_cap(world):
    '''
    with a cap of 2, pairs of instance views run together
    '''
    world.vms = [ns(id=vm_id('abc', 'rg1', f"vm{x}"), name=f"vm{x}") for x in range(6)]
    world.barriers['vm_instance_view_get'] = threading.Barrier(2, timeout=10)
    repository = AzureRepository(client_factory=lambda *args, **kwargs: _factory(world, *args, **kwargs), fanout_max_outstanding=2)
    assert len(repository.list_virtual_machines(TOKEN, SUB)) == 6

@pytest.mark.parametrize('status,expect',
                         [('Succeeded', True),
                          ('InProgress', True),
                          ('whatever', True),
                          (None, True),
                          ('Failed', False),
                         ])
def test_start_stop_virtual_machine(repository, world, status, expect):
    '''
    start/stop are false only for Failed
    '''
    world.vm_op_status = status
    assert repository.start_virtual_machine(TOKEN, SUB, 'rg1', 'vmA') is expect
    assert repository.stop_virtual_machine(TOKEN, SUB, 'rg1', 'vmA') is expect
    assert world.calls_of('vm_start') == [('vmA', 'rg1')]
    assert world.calls_of('vm_power_off') == [('vmA', 'rg1')]
    assert _all_closed(world)

def test_start_virtual_machine_error(repository, world):
    '''
    remote errors propagate rather than becoming False
    '''
    world.failures[('vm_start', 'vmA')] = HttpResponseError('throttled')
    with pytest.raises(HttpResponseError):
        repository.start_virtual_machine(TOKEN, SUB, 'rg1', 'vmA')
    assert _all_closed(world)

######################################################################
# automation

def _automation_world(world):
    world.accounts = [ns(id=account_id('abc', 'rg1', 'acct1'), name='acct1'),
                      ns(id=account_id('abc', 'rg2', 'acct2'), name='acct2'),
                     ]
    world.runbooks = {'acct1' : [ns(id='rbid1', name='rb1'), ns(id='rbid2', name='rb2')],
                      'acct2' : list(),
                     }
    world.runbook_parameters = {('acct1', 'rb1') : {'count' : ns(type='Int32', is_mandatory=True, position=0, default_value='1'),
                                                    'name' : ns(type='String', is_mandatory=False, position=1, default_value=None),
                                                   },
                                ('acct1', 'rb2') : None,
                               }

def test_list_automation_accounts(repository, world):
    '''
    accounts come back with runbooks and parameters fully populated
    '''
    _automation_world(world)
    accounts = repository.list_automation_accounts(TOKEN, SUB)
    count = RunbookParameter('count', default_value='1', is_mandatory=True, position=0, type='Int32')
    name = RunbookParameter('name', default_value=None, is_mandatory=False, position=1, type='String')
    assert accounts == [AutomationAccount(SUB, 'rg1', account_id('abc', 'rg1', 'acct1'), 'acct1',
                                          [Runbook('rbid1', 'rb1', [count, name]),
                                           Runbook('rbid2', 'rb2', list()),
                                          ]),
                        AutomationAccount(SUB, 'rg2', account_id('abc', 'rg2', 'acct2'), 'acct2', list()),
                       ]
    assert sorted(world.calls_of('runbook_list')) == [('acct1', 'rg1'), ('acct2', 'rg2')]
    assert sorted(world.calls_of('runbook_get')) == [('rb1', 'rg1', 'acct1'), ('rb2', 'rg1', 'acct1')]
    # one client per operation: accounts, two runbook lists, two parameter fetches
    assert len(world.clients) == 5
    assert _all_closed(world)

def test_list_automation_accounts_nested_failure(repository, world):
    '''
    a failed parameter fetch deep in the tree fails the whole operation
    '''
    _automation_world(world)
    exc = HttpResponseError('runbook fetch failed')
    world.failures[('runbook_get', 'rb2')] = exc
    with pytest.raises(HttpResponseError) as exc_info:
        repository.list_automation_accounts(TOKEN, SUB)
    assert exc_info.value is exc
    assert _all_closed(world)

def test_list_automation_accounts_concurrent(repository, world):
    '''
    accounts fan out to runbook lists together, and every runbook
    of every account is fetched at the same time
    '''
    world.accounts = [ns(id=account_id('abc', 'rg1', f"acct{x}"), name=f"acct{x}") for x in range(3)]
    world.runbooks = {f"acct{x}" : [ns(id=f"rbid{x}{y}", name=f"rb{x}{y}") for y in range(2)] for x in range(3)}
    world.barriers['runbook_list'] = threading.Barrier(3, timeout=10)
    world.barriers['runbook_get'] = threading.Barrier(6, timeout=10)
    accounts = repository.list_automation_accounts(TOKEN, SUB)
    assert [a.automation_account_name for a in accounts] == ['acct0', 'acct1', 'acct2']
    assert [[rb.runbook_name for rb in a.runbooks] for a in accounts] == [['rb00', 'rb01'], ['rb10', 'rb11'], ['rb20', 'rb21']]
    assert _all_closed(world)

def test_list_automation_runbooks(repository, world):
    '''
    runbooks for one account
    '''
    _automation_world(world)
    runbooks = repository.list_automation_runbooks(TOKEN, SUB, 'rg1', 'acct1')
    assert [rb.runbook_name for rb in runbooks] == ['rb1', 'rb2']
    assert [p.parameter_name for p in runbooks[0].runbook_parameters] == ['count', 'name']
    assert runbooks[1].runbook_parameters == tuple()
    assert _all_closed(world)

def test_list_automation_runbook_parameters(repository, world):
    '''
    parameters preserve declaration order
    '''
    world.runbook_parameters[('acct', 'rb')] = {'count' : ns(type='Int32', is_mandatory=True, position=0, default_value='1')}
    params = repository.list_automation_runbook_parameters(TOKEN, SUB, 'rg1', 'acct', 'rb')
    assert params == [RunbookParameter('count', default_value='1', is_mandatory=True, position=0, type='Int32')]
    assert world.calls_of('runbook_get') == [('rb', 'rg1', 'acct')]
    assert _all_closed(world)

def test_runbook_parameters_from_mapping():
    '''
    missing fields become defaults
    '''
    params = AzureRepository.runbook_parameters_from_mapping({'b' : ns(), 'a' : ns(is_mandatory=None)})
    assert params == [RunbookParameter('b'), RunbookParameter('a')]
    assert AzureRepository.runbook_parameters_from_mapping(None) == list()

@pytest.mark.parametrize('status_code,expect',
                         [(201, True),
                          (200, False),
                          (202, False),
                         ])
def test_start_runbook(repository, world, status_code, expect):
    '''
    only 201 is success; parameters are passed as strings
    '''
    world.job_status_code = status_code
    assert repository.start_runbook(TOKEN, SUB, 'rg1', 'acct', 'rb', {'count' : 3}) is expect
    assert world.calls_of('job_create') == [('rb', 'rg1', 'acct', {'count' : '3'})]
    assert _all_closed(world)

def test_start_runbook_no_parameters(repository, world):
    '''
    parameters are optional
    '''
    assert repository.start_runbook(TOKEN, SUB, 'rg1', 'acct', 'rb')
    assert world.calls_of('job_create') == [('rb', 'rg1', 'acct', None)]
