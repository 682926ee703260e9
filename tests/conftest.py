#
# tests/conftest.py
#
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
'''
Shared pytest fixtures for azbot
'''
import threading
import types

import pytest

import azbot
import azbot.base_defaults
from azbot.clients import ResourceClient
from azbot.common import Application
from azbot.repository import AzureRepository

def ns(**kwargs):
    '''
    Shorthand for an SDK-shaped object
    '''
    return types.SimpleNamespace(**kwargs)

def vm_id(subscription_id, resource_group, name):
    '''
    Build a VM resource ID
    '''
    return f"/subscriptions/{subscription_id}/resourceGroups/{resource_group}/providers/Microsoft.Compute/virtualMachines/{name}"

def account_id(subscription_id, resource_group, name):
    '''
    Build an automation account resource ID
    '''
    return f"/subscriptions/{subscription_id}/resourceGroups/{resource_group}/providers/Microsoft.Automation/automationAccounts/{name}"

class FakeWorld():
    '''
    The remote state seen by every FakeResourceClient built from one factory.
    failures maps (method_name, first_arg_or_None) to an exception to raise.
    barriers maps method_name to a threading.Barrier every such call waits on.
    '''
    def __init__(self):
        self.lock = threading.Lock()
        self.subscriptions = list()
        self.vms = list()
        self.instance_views = dict() # vm name -> list of statuses
        self.accounts = list()
        self.runbooks = dict() # account name -> list of runbooks
        self.runbook_parameters = dict() # (account name, runbook name) -> mapping
        self.vm_op_status = 'Succeeded'
        self.job_status_code = 201
        self.failures = dict()
        self.barriers = dict()
        self.calls = list()
        self.clients = list()

    def record(self, method, *args):
        with self.lock:
            self.calls.append((method,) + args)
        barrier = self.barriers.get(method)
        if barrier is not None:
            barrier.wait()
        for key in ((method, args[0] if args else None), (method, None)):
            exc = self.failures.get(key)
            if exc is not None:
                raise exc

    def calls_of(self, method):
        return [c[1:] for c in self.calls if c[0] == method]

class FakeResourceClient(ResourceClient):
    '''
    ResourceClient that serves data from a FakeWorld
    '''
    def __init__(self, world, access_token, subscription_id=None, logger=None):
        super().__init__(subscription_id=subscription_id, logger=logger)
        self.world = world
        self.access_token = access_token
        self.closed = False

    def close(self):
        self.closed = True

    def subscriptions_list(self):
        self.world.record('subscriptions_list')
        return list(self.world.subscriptions)

    def vm_list(self):
        self.world.record('vm_list')
        return list(self.world.vms)

    def vm_instance_view_get(self, resource_group, vm_name):
        self.world.record('vm_instance_view_get', vm_name, resource_group)
        return ns(statuses=self.world.instance_views.get(vm_name))

    def vm_start(self, resource_group, vm_name):
        self.world.record('vm_start', vm_name, resource_group)
        return self.world.vm_op_status

    def vm_power_off(self, resource_group, vm_name):
        self.world.record('vm_power_off', vm_name, resource_group)
        return self.world.vm_op_status

    def automation_account_list(self):
        self.world.record('automation_account_list')
        return list(self.world.accounts)

    def runbook_list(self, resource_group, automation_account_name):
        self.world.record('runbook_list', automation_account_name, resource_group)
        return list(self.world.runbooks.get(automation_account_name, list()))

    def runbook_get(self, resource_group, automation_account_name, runbook_name):
        self.world.record('runbook_get', runbook_name, resource_group, automation_account_name)
        return ns(name=runbook_name, parameters=self.world.runbook_parameters.get((automation_account_name, runbook_name)))

    def job_create(self, resource_group, automation_account_name, runbook_name, parameters=None):
        self.world.record('job_create', runbook_name, resource_group, automation_account_name, parameters)
        return self.world.job_status_code

@pytest.fixture(autouse=True)
def cfg_reset(monkeypatch):
    '''
    Each test starts with no config file and no test values
    '''
    monkeypatch.delenv(azbot.base_defaults.CONFIG_PATH_ENV, raising=False)
    monkeypatch.setattr(Application, 'LOG_LEVEL_PYTEST', 'debug')
    azbot.reset_caches()
    yield
    azbot.reset_caches()

@pytest.fixture
def world():
    '''
    Empty remote state
    '''
    return FakeWorld()

@pytest.fixture
def repository(world):
    '''
    AzureRepository whose clients are FakeResourceClient
    '''
    def client_factory(access_token, subscription_id, logger=None):
        client = FakeResourceClient(world, access_token, subscription_id=subscription_id, logger=logger)
        with world.lock:
            world.clients.append(client)
        return client
    return AzureRepository(client_factory=client_factory)
