#
# azbot/fanout.py
#
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
'''
Fan-out enrichment: invoke one call per item of a collection
concurrently, with a cap on how many calls are in flight.

Both entry points wait for every call to finish before returning.
fanout_results() is all-or-nothing: if any call fails, the first
failure in input order is re-raised as-is once all siblings are done.
fanout_outcomes() never raises for a failed call; it returns one
CallResult per item so the caller can decide what partial failure means.

Results are returned in input order.
'''
import functools
import logging

from azbot.util import Parallel

def _fanout_names(items, label, namer):
    '''
    Return a list of unique work names, one per item
    '''
    ret = list()
    for idx, item in enumerate(items):
        desc = namer(item) if namer else None
        if desc:
            ret.append("%s[%d]:%s" % (label, idx, desc))
        else:
            ret.append("%s[%d]" % (label, idx))
    return ret

def fanout_outcomes(items, call, logger=None, max_outstanding=None, label='fanout', namer=None):
    '''
    Invoke call(item) for each item in items. Return a list of CallResult
    in the same order as items. The name of each CallResult is
    "label[index]" or "label[index]:namer(item)".
    '''
    items = list(items)
    if not items:
        return list()
    logger = logger if logger is not None else logging.getLogger('azbot.fanout')
    names = _fanout_names(items, label, namer)
    parallel = Parallel([(name, functools.partial(call, item)) for name, item in zip(names, items)],
                        max_outstanding=max_outstanding, logger=logger)
    outcomes = parallel.wait()
    logger.debug("%s: %d call(s) complete, %d failed, high_water=%d",
                 label, len(outcomes), len(parallel.failed()), parallel.high_water)
    return outcomes

def fanout_results(items, call, logger=None, max_outstanding=None, label='fanout', namer=None):
    '''
    Invoke call(item) for each item in items. Return the list
    of call results in the same order as items.
    If any call raised, re-raise the exception from the earliest
    such item after every call has completed.
    '''
    outcomes = fanout_outcomes(items, call, logger=logger, max_outstanding=max_outstanding, label=label, namer=namer)
    for cr in outcomes:
        if cr.failed:
            raise cr.exc
    return [cr.result for cr in outcomes]
