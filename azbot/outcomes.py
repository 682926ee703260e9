#
# azbot/outcomes.py
#
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
'''
Narrow remote operation outcomes to the bool reported to callers.

The two policies differ on purpose:
  VM start/stop: anything other than a known failure is success,
                 including operations that are still in progress.
  runbook start: only HTTP 201 Created is success.
'''
import http.client

from azbot.btypes import OperationStatus

def operation_status_succeeded(status) -> bool:
    '''
    status is OperationStatus or raw status text.
    Return False iff the status is Failed.
    '''
    return OperationStatus.from_text(status) != OperationStatus.FAILED

def job_create_succeeded(status_code) -> bool:
    '''
    status_code is the HTTP status of the job-create call.
    Return True iff it is 201 Created.
    '''
    try:
        return int(status_code) == http.client.CREATED
    except (TypeError, ValueError):
        return False
