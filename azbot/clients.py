#
# azbot/clients.py
#
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
'''
Resource clients: the only place azbot talks to Azure.

ResourceClient is the contract the repository depends on.
AzureResourceClient implements it with the Azure management SDKs.
Each client is scoped to one credential and (optionally) one
subscription, and is used as a context manager so the SDK clients
it generates are closed on every exit path.

Return values are SDK-shaped objects; normalization into azbot.models
happens in azbot.repository.
'''
import abc
import functools
import logging
import threading
import uuid

from azure.mgmt.automation import AutomationClient
import azure.mgmt.automation.models
from azure.mgmt.compute import ComputeManagementClient
from azure.mgmt.subscription import SubscriptionClient

import azbot.base_defaults
import azbot.clouds
from azbot.credentials import BearerTokenCredential
from azbot.msapicall import msapicall

class ResourceClient(abc.ABC):
    '''
    Capabilities for the four resource families azbot handles.
    Every operation is one remote round trip (list operations
    expand the whole page sequence) and may fail independently.
    '''
    def __init__(self, subscription_id=None, logger=None):
        self.subscription_id = subscription_id or None
        self.logger = logger if logger is not None else logging.getLogger('azbot.clients')

    def __repr__(self):
        return "<%s,subscription_id=%r>" % (type(self).__name__, self.subscription_id)

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def close(self):
        '''
        Release whatever this client holds. Safe to call more than once.
        '''

    @abc.abstractmethod
    def subscriptions_list(self):
        '''
        Return a list of subscriptions (subscription_id, display_name) visible to the credential
        '''

    @abc.abstractmethod
    def vm_list(self):
        '''
        Return a list of VMs (id, name) in the subscription
        '''

    @abc.abstractmethod
    def vm_instance_view_get(self, resource_group, vm_name):
        '''
        Return the instance view (statuses) of one VM
        '''

    @abc.abstractmethod
    def vm_start(self, resource_group, vm_name):
        '''
        Start a VM. Return the raw operation status text.
        '''

    @abc.abstractmethod
    def vm_power_off(self, resource_group, vm_name):
        '''
        Power off (not deallocate) a VM. Return the raw operation status text.
        '''

    @abc.abstractmethod
    def automation_account_list(self):
        '''
        Return a list of automation accounts (id, name) in the subscription
        '''

    @abc.abstractmethod
    def runbook_list(self, resource_group, automation_account_name):
        '''
        Return a list of runbooks (id, name) in one automation account
        '''

    @abc.abstractmethod
    def runbook_get(self, resource_group, automation_account_name, runbook_name):
        '''
        Return one runbook including its parameters mapping
        '''

    @abc.abstractmethod
    def job_create(self, resource_group, automation_account_name, runbook_name, parameters=None):
        '''
        Create a job for the named runbook.
        parameters is None or a dict of name : str value.
        Return the HTTP status code of the create call.
        '''

def _status_code_from_response(pipeline_response, deserialized, headers): # pylint: disable=unused-argument
    '''
    Passed as cls= to generated SDK operations to get the
    HTTP status code back instead of the deserialized model.
    '''
    return pipeline_response.http_response.status_code

class AzureResourceClient(ResourceClient):
    '''
    ResourceClient backed by the Azure management SDKs.
    SDK clients are generated on first use and cached until close().
    '''
    def __init__(self, credential, subscription_id=None, cloud=None, logger=None):
        super().__init__(subscription_id=subscription_id, logger=logger)
        self.credential = credential
        self.cloud = cloud if cloud is not None else azbot.clouds.cloud_get(azbot.base_defaults.CLOUD_NAME_DEFAULT)
        self._az_client_gen_lock = threading.RLock()
        self._closed = False

        # Do not access these directly - access them as self._az_*_client - eg self._az_compute_client
        self._az_automation_cachedclient = None
        self._az_compute_cachedclient = None
        self._az_subscription_cachedclient = None

    _CACHED_CLIENT_ATTRS = ('_az_automation_cachedclient',
                            '_az_compute_cachedclient',
                            '_az_subscription_cachedclient',
                           )

    @classmethod
    def from_access_token(cls, access_token, subscription_id=None, **kwargs):
        '''
        Construct using a caller-provided bearer token
        '''
        return cls(BearerTokenCredential(access_token), subscription_id=subscription_id, **kwargs)

    def close(self):
        '''
        Close every SDK client generated so far, then the credential.
        Every close is attempted; if any raised, the first such
        exception is re-raised after the rest are done.
        '''
        with self._az_client_gen_lock:
            self._closed = True
            closers = list()
            for attr in self._CACHED_CLIENT_ATTRS:
                client = getattr(self, attr)
                if client is not None:
                    setattr(self, attr, None)
                    closers.append(client.close)
            credential_close = getattr(self.credential, 'close', None)
            if credential_close:
                closers.append(credential_close)
            first_exc = None
            for close in closers:
                try:
                    close()
                except Exception as exc:
                    self.logger.warning("%r: %r failed: %r", self, close, exc)
                    if first_exc is None:
                        first_exc = exc
            if first_exc is not None:
                raise first_exc

    ######################################################################
    # SDK client generation

    def _az_client_gen_do(self, client_class, subscription_scoped=True):
        '''
        Factory for Azure SDK client of type client_class.
        '''
        kwargs = {'base_url' : azbot.clouds.resource_manager_url(self.cloud),
                  'credential_scopes' : azbot.clouds.resource_manager_scopes(self.cloud),
                 }
        if subscription_scoped:
            if not self.subscription_id:
                raise ValueError("%s requires subscription_id" % client_class.__name__)
            return client_class(self.credential, self.subscription_id, **kwargs)
        return client_class(self.credential, **kwargs)

    def _az_client_gen_property(self, name, client_class, **kwargs):
        '''
        Generate self.<name> as self._az_client_gen_do(...).
        This caches the result so it may be reused for the
        lifetime of this object.
        '''
        with self._az_client_gen_lock:
            if self._closed:
                raise ValueError("%r is closed" % self)
            ret = getattr(self, name, None)
            if ret is None:
                ret = self._az_client_gen_do(client_class, **kwargs)
                setattr(self, name, ret)
            return ret

    @property
    def _az_automation_client(self) -> AutomationClient:
        '''
        Getter: self._az_automation_client, generated on the first call and then cached
        '''
        return self._az_client_gen_property('_az_automation_cachedclient', AutomationClient)

    @property
    def _az_compute_client(self) -> ComputeManagementClient:
        '''
        Getter: self._az_compute_client, generated on the first call and then cached
        '''
        return self._az_client_gen_property('_az_compute_cachedclient', ComputeManagementClient)

    @property
    def _az_subscription_client(self) -> SubscriptionClient:
        '''
        Getter: self._az_subscription_client, generated on the first call and then cached
        '''
        return self._az_client_gen_property('_az_subscription_cachedclient', SubscriptionClient, subscription_scoped=False)

    ######################################################################
    # call wrapping

    @staticmethod
    def _listop_expand(call, *args, **kwargs):
        '''
        Create the pager and expand it to a list.
        '''
        pager = call(*args, **kwargs)
        if not pager:
            return list()
        return list(pager)

    def _cw_list(self, call, *args, **kwargs):
        '''
        Rewrap a generic operation that lists something.
        Generating the pager and expanding it happen inside
        one msapicall() so paging errors are handled the same way.
        '''
        return msapicall(self.logger, functools.partial(self._listop_expand, call, *args, **kwargs))

    ######################################################################
    # subscriptions

    def subscriptions_list(self):
        return self._cw_list(self._az_subscription_client.subscriptions.list)

    ######################################################################
    # compute

    def vm_list(self):
        return self._cw_list(self._az_compute_client.virtual_machines.list_all)

    def vm_instance_view_get(self, resource_group, vm_name):
        return msapicall(self.logger, self._az_compute_client.virtual_machines.instance_view, resource_group, vm_name)

    def vm_start(self, resource_group, vm_name):
        op = msapicall(self.logger, self._az_compute_client.virtual_machines.begin_start, resource_group, vm_name)
        status = op.status()
        self.logger.debug("VM %r/%r start status %r", resource_group, vm_name, status)
        return status

    def vm_power_off(self, resource_group, vm_name):
        op = msapicall(self.logger, self._az_compute_client.virtual_machines.begin_power_off, resource_group, vm_name)
        status = op.status()
        self.logger.debug("VM %r/%r power_off status %r", resource_group, vm_name, status)
        return status

    ######################################################################
    # automation

    def automation_account_list(self):
        return self._cw_list(self._az_automation_client.automation_account.list)

    def runbook_list(self, resource_group, automation_account_name):
        return self._cw_list(self._az_automation_client.runbook.list_by_automation_account, resource_group, automation_account_name)

    def runbook_get(self, resource_group, automation_account_name, runbook_name):
        return msapicall(self.logger, self._az_automation_client.runbook.get, resource_group, automation_account_name, runbook_name)

    def job_create(self, resource_group, automation_account_name, runbook_name, parameters=None):
        params = azure.mgmt.automation.models.JobCreateParameters(runbook=azure.mgmt.automation.models.RunbookAssociationProperty(name=runbook_name),
                                                                   parameters=dict(parameters) if parameters else None)
        job_name = str(uuid.uuid4())
        self.logger.debug("create job %s for runbook %r in %r/%r", job_name, runbook_name, resource_group, automation_account_name)
        return msapicall(self.logger, self._az_automation_client.job.create,
                         resource_group, automation_account_name, job_name, params,
                         cls=_status_code_from_response)
