#
# azbot/__init__.py
#
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
'''
Base azbot import
'''
from ._cfg import cfg
from .btypes import (OperationStatus,
                     PowerState,
                    )
from .models import (AutomationAccount,
                     Runbook,
                     RunbookParameter,
                     Subscription,
                     VirtualMachine,
                    )

__all__ = ['AutomationAccount',
           'OperationStatus',
           'PowerState',
           'Runbook',
           'RunbookParameter',
           'Subscription',
           'VirtualMachine',
           'cfg',
          ]

reset_hooks = [cfg.reset,
              ]

def reset_caches():
    '''
    Discard cached content.
    '''
    for reset_hook in reset_hooks:
        reset_hook()
