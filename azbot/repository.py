#
# azbot/repository.py
#
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
'''
AzureRepository: the credential-scoped façade over Azure resources.

Listing operations issue one top-level list call and then fan out
one enrichment call per returned item:
    list_virtual_machines:      VM -> instance view
    list_automation_accounts:   account -> runbooks -> parameters
    list_automation_runbooks:   runbook -> parameters
The fan-out is bounded by fanout_max_outstanding per level and
is all-or-nothing: a failed enrichment call fails the whole
operation with the original exception, and no partial collection
is returned. list_virtual_machines_outcomes() is the exception;
it reports one outcome per VM.

Each public operation acquires its own ResourceClient and
releases it before returning or raising. Nothing is cached
between operations.
'''
import functools

from azbot._cfg import cfg
import azbot.base_defaults
from azbot.azresourceid import (resource_group_extract,
                                resource_name_extract,
                               )
from azbot.clients import AzureResourceClient
import azbot.clouds
from azbot.common import Application
from azbot.fanout import (fanout_outcomes,
                          fanout_results,
                         )
from azbot.models import (AutomationAccount,
                          Runbook,
                          RunbookParameter,
                          Subscription,
                          VirtualMachine,
                         )
from azbot.outcomes import (job_create_succeeded,
                            operation_status_succeeded,
                           )
from azbot.powerstate import power_state_from_statuses

class AzureRepository(Application):
    '''
    Provide the azbot operations. Construct once and reuse;
    the object holds configuration only.

    client_factory is called as client_factory(access_token, subscription_id, logger=logger)
    and must return a ResourceClient. The default builds an AzureResourceClient.
    '''
    LOGGER_NAME = 'repository'

    def __init__(self,
                 client_factory=None,
                 cloud_name=None,
                 fanout_max_outstanding=None,
                 **kwargs):
        super().__init__(**kwargs)
        self.cloud_name = cloud_name or cfg.get('cloud_name', azbot.base_defaults.CLOUD_NAME_DEFAULT)
        self.cloud = azbot.clouds.cloud_get(self.cloud_name, exc_value=self.exc_value)
        self.fanout_max_outstanding = fanout_max_outstanding if fanout_max_outstanding is not None else cfg.get('fanout_max_outstanding', azbot.base_defaults.FANOUT_MAX_OUTSTANDING_DEFAULT)
        if isinstance(self.fanout_max_outstanding, bool) or (not isinstance(self.fanout_max_outstanding, int)) or (self.fanout_max_outstanding <= 0):
            raise self.exc_value("invalid fanout_max_outstanding %r" % self.fanout_max_outstanding)
        self.client_factory = client_factory or self._client_factory_default

    def __repr__(self):
        return "<%s,cloud_name=%r,fanout_max_outstanding=%r>" % (type(self).__name__, self.cloud_name, self.fanout_max_outstanding)

    def _client_factory_default(self, access_token, subscription_id, logger=None):
        '''
        Default client_factory
        '''
        return AzureResourceClient.from_access_token(access_token, subscription_id=subscription_id, cloud=self.cloud, logger=logger)

    def client_get(self, access_token, subscription_id=None):
        '''
        Return a new ResourceClient scoped to access_token and subscription_id.
        Callers use it as a context manager.
        '''
        if not access_token:
            raise self.exc_value("access_token not specified")
        return self.client_factory(access_token, subscription_id, logger=self.logger)

    def _fanout(self, items, call, label, namer=None):
        '''
        All-or-nothing fan-out with this object's limits
        '''
        return fanout_results(items, call, logger=self.logger, max_outstanding=self.fanout_max_outstanding, label=label, namer=namer)

    @staticmethod
    def _namer(item):
        '''
        Label SDK objects in fan-out work names
        '''
        return getattr(item, 'name', None) or resource_name_extract(getattr(item, 'id', None))

    ######################################################################
    # subscriptions

    def list_subscriptions(self, access_token):
        '''
        Return a list of Subscription visible to access_token
        '''
        with self.client_get(access_token) as client:
            subs = client.subscriptions_list()
        return [Subscription(sub.subscription_id, sub.display_name) for sub in subs]

    ######################################################################
    # virtual machines

    def _vm_enrich(self, client, subscription_id, vm):
        '''
        Fetch the instance view for vm (SDK object) and return VirtualMachine
        '''
        resource_group = resource_group_extract(vm.id)
        instance_view = client.vm_instance_view_get(resource_group, vm.name)
        power_state = power_state_from_statuses(getattr(instance_view, 'statuses', None))
        return VirtualMachine(subscription_id, resource_group, vm.name, power_state)

    def list_virtual_machines(self, access_token, subscription_id):
        '''
        Return a list of VirtualMachine, one per VM in subscription_id,
        each with its power state.
        '''
        with self.client_get(access_token, subscription_id) as client:
            vms = client.vm_list()
            self.logger.debug("%s: %d VM(s) in subscription %s", self.mth(), len(vms), subscription_id)
            return self._fanout(vms, functools.partial(self._vm_enrich, client, subscription_id), 'vm', namer=self._namer)

    def list_virtual_machines_outcomes(self, access_token, subscription_id):
        '''
        Like list_virtual_machines(), but isolate per-VM failures.
        Return a list of azbot.util.CallResult, one per VM. Each has
        result=VirtualMachine on success or exc set on failure.
        A failure of the list call itself still raises.
        '''
        with self.client_get(access_token, subscription_id) as client:
            vms = client.vm_list()
            return fanout_outcomes(vms, functools.partial(self._vm_enrich, client, subscription_id),
                                   logger=self.logger, max_outstanding=self.fanout_max_outstanding, label='vm', namer=self._namer)

    def start_virtual_machine(self, access_token, subscription_id, resource_group, vm_name):
        '''
        Start the VM. Return False iff the operation reports Failed.
        In-progress and unrecognized statuses count as success.
        '''
        with self.client_get(access_token, subscription_id) as client:
            status = client.vm_start(resource_group, vm_name)
        ret = operation_status_succeeded(status)
        self.logger.info("start VM %s/%s status=%r success=%s", resource_group, vm_name, status, ret)
        return ret

    def stop_virtual_machine(self, access_token, subscription_id, resource_group, vm_name):
        '''
        Power off the VM (it remains allocated).
        Return False iff the operation reports Failed.
        '''
        with self.client_get(access_token, subscription_id) as client:
            status = client.vm_power_off(resource_group, vm_name)
        ret = operation_status_succeeded(status)
        self.logger.info("stop VM %s/%s status=%r success=%s", resource_group, vm_name, status, ret)
        return ret

    ######################################################################
    # automation

    def list_automation_accounts(self, access_token, subscription_id):
        '''
        Return a list of AutomationAccount, each with all of its
        runbooks and each runbook with all of its parameters.
        '''
        def _account_enrich(account):
            resource_group = resource_group_extract(account.id)
            runbooks = self.list_automation_runbooks(access_token, subscription_id, resource_group, account.name)
            return AutomationAccount(subscription_id, resource_group, account.id, account.name, runbooks)

        with self.client_get(access_token, subscription_id) as client:
            accounts = client.automation_account_list()
        self.logger.debug("%s: %d automation account(s) in subscription %s", self.mth(), len(accounts), subscription_id)
        return self._fanout(accounts, _account_enrich, 'automation_account', namer=self._namer)

    def list_automation_runbooks(self, access_token, subscription_id, resource_group, automation_account_name):
        '''
        Return a list of Runbook in the automation account,
        each with all of its parameters.
        '''
        def _runbook_enrich(runbook):
            parameters = self.list_automation_runbook_parameters(access_token, subscription_id, resource_group, automation_account_name, runbook.name)
            return Runbook(runbook.id, runbook.name, parameters)

        with self.client_get(access_token, subscription_id) as client:
            runbooks = client.runbook_list(resource_group, automation_account_name)
        return self._fanout(runbooks, _runbook_enrich, 'runbook', namer=self._namer)

    @staticmethod
    def runbook_parameters_from_mapping(parameters):
        '''
        parameters is a mapping of name : parameter definition
        (azure.mgmt.automation.models.RunbookParameter) or None.
        Return a list of RunbookParameter in mapping order.
        '''
        ret = list()
        for name, definition in (parameters or dict()).items():
            ret.append(RunbookParameter(name,
                                        default_value=getattr(definition, 'default_value', None),
                                        is_mandatory=getattr(definition, 'is_mandatory', False),
                                        position=getattr(definition, 'position', None),
                                        type=getattr(definition, 'type', None)))
        return ret

    def list_automation_runbook_parameters(self, access_token, subscription_id, resource_group, automation_account_name, runbook_name):
        '''
        Return a list of RunbookParameter for the runbook
        '''
        with self.client_get(access_token, subscription_id) as client:
            runbook = client.runbook_get(resource_group, automation_account_name, runbook_name)
        return self.runbook_parameters_from_mapping(getattr(runbook, 'parameters', None))

    def start_runbook(self, access_token, subscription_id, resource_group, automation_account_name, runbook_name, parameters=None):
        '''
        Create a job for the runbook. parameters is an optional
        mapping of parameter name : str value.
        Return True iff the job create returned 201 Created.
        '''
        if parameters is not None:
            parameters = {str(k) : str(v) for k, v in parameters.items()}
        with self.client_get(access_token, subscription_id) as client:
            status_code = client.job_create(resource_group, automation_account_name, runbook_name, parameters)
        ret = job_create_succeeded(status_code)
        self.logger.info("start runbook %s/%s/%s status_code=%r success=%s", resource_group, automation_account_name, runbook_name, status_code, ret)
        return ret
