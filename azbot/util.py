#
# azbot/util.py
#
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
'''
Various utility functions and classes.
'''
import logging
import sys
import threading
import time
import traceback

from azbot.base_defaults import PF

def getframename(idx):
    '''
    Return a string that is the name of the caller
    '''
    f = sys._getframe(idx+1) # pylint: disable=protected-access
    return f.f_code.co_name

def getframe(idx):
    '''
    Return a string of the form caller_name:linenumber.
    idx is the number of frames up the stack, so 1 = immediate caller.
    '''
    f = sys._getframe(idx+1) # pylint: disable=protected-access
    return "%s:%s" % (f.f_code.co_name, f.f_lineno)

def indent_simple(item, prefix=PF):
    '''
    Returns each thing in item indented
    '''
    sep = '\n' + prefix
    if isinstance(item, (list, set, tuple)):
        return prefix + sep.join(item)
    return prefix + sep.join([str(x) for x in item])

def indent_exc(prefix=PF):
    '''
    Indented human-readable exception stack.
    '''
    return indent_simple([x.rstrip() for x in traceback.format_exc().splitlines()], prefix=prefix)

def elapsed(ts0, ts1=None):
    '''
    Return the amount of time elapsed since ts0.
    If ts1 is provided, this is the time elapsed from ts0 to ts1.
    If ts1 is not provided, this is the time elapsed from ts0 to now.
    '''
    if ts1 is None:
        ts1 = time.time()
    return max(ts1 - ts0, 0.0)

_LOG_LEVELS = {'debug' : logging.DEBUG,
               'info' : logging.INFO,
               'warning' : logging.WARNING,
               'error' : logging.ERROR,
               'critical' : logging.CRITICAL,
              }

def log_level_normalize(log_level):
    '''
    Given log_level as a name ('info') or a number (logging.INFO),
    return the number.
    '''
    if isinstance(log_level, bool):
        raise TypeError("invalid log_level %r" % log_level)
    if isinstance(log_level, int):
        return log_level
    if isinstance(log_level, str):
        try:
            return _LOG_LEVELS[log_level.lower()]
        except KeyError as exc:
            raise ValueError("invalid log_level %r" % log_level) from exc
    raise TypeError("invalid log_level type %s" % type(log_level).__name__)

class CallResult():
    '''
    Outcome of one call.
    name: logical name of the call; arbitrary string
    result: what the call returned.
    exc: exception raised by the call.
    At least one of {result,exc} is always None.
    '''
    def __init__(self, name, result=None, exc=None):
        self.name = name
        self.result = result
        self.exc = exc

    def __repr__(self):
        return "%s(%r, result=%r, exc=%r)" % (type(self).__name__, self.name, self.result, self.exc)

    @property
    def failed(self):
        '''
        Return whether the call raised
        '''
        return self.exc is not None

class Parallel():
    '''
    Run a list of (name, call) pairs on worker threads.
    call is invoked as call() - use functools.partial to pass arguments.
    No more than max_outstanding calls run at once; None means no limit.
    A call that raises does not stop its siblings.
    outcomes holds one CallResult per pair, in the order given.
    '''
    def __init__(self, work, max_outstanding=None, logger=None):
        work = list(work)
        if not work:
            raise ValueError('work')
        if (max_outstanding is not None) and (isinstance(max_outstanding, bool) or (not isinstance(max_outstanding, int)) or (max_outstanding <= 0)):
            raise ValueError("invalid max_outstanding %r" % max_outstanding)
        self.logger = logger if logger is not None else logging.getLogger('azbot.parallel')
        self.outcomes = [CallResult(name) for name, _ in work]
        self._calls = [call for _, call in work]
        self._max_outstanding = max_outstanding
        self._cond = threading.Condition()
        self._next = 0 # index of the next call to launch
        self._running = 0
        self._complete = 0
        self._high_water = 0

    def _run(self, idx):
        '''
        Thread target: invoke one call and record its outcome.
        '''
        callresult = self.outcomes[idx]
        try:
            callresult.result = self._calls[idx]()
        except BaseException as exc:
            self.logger.warning("%s failed: %r", callresult.name, exc)
            self.logger.debug("%s failed:\n%s", callresult.name, indent_exc())
            callresult.exc = exc
            if not isinstance(exc, Exception):
                raise
        finally:
            with self._cond:
                self._running -= 1
                self._complete += 1
                self._launch_NL()
                self._cond.notify_all()

    def _launch_NL(self):
        '''
        Launch as many pending calls as max_outstanding allows.
        A call whose thread cannot be started is complete with
        the start error as its exception.
        Caller holds lock for self._cond
        '''
        while (self._next < len(self._calls)) and ((self._max_outstanding is None) or (self._running < self._max_outstanding)):
            idx = self._next
            self._next += 1
            callresult = self.outcomes[idx]
            thread = threading.Thread(target=self._run, args=(idx,), name=callresult.name)
            try:
                thread.start()
            except RuntimeError as exc:
                self.logger.warning("%s cannot start: %r", callresult.name, exc)
                callresult.exc = exc
                self._complete += 1
                continue
            self._running += 1
            self._high_water = max(self._high_water, self._running)

    def wait(self):
        '''
        Launch the work and block until every call is complete.
        Returns outcomes.
        '''
        with self._cond:
            self._launch_NL()
            while self._complete < len(self._calls):
                self._cond.wait()
        return self.outcomes

    @property
    def high_water(self):
        '''
        Largest number of calls observed running at once
        '''
        with self._cond:
            return self._high_water

    def failed(self):
        '''
        Return the failed outcomes in input order
        '''
        with self._cond:
            return [cr for cr in self.outcomes if cr.failed]
