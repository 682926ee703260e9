#
# azbot/btypes.py
#
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License.
#
'''
Basic types. No dependencies within the repo outside this file.
'''
import enum

class EnumMixin():
    '''
    Mixin for enums that extends them with additional operations.
    Use this rather than subclassing the enum classes to avoid
    confusing pylint.
    '''
    @classmethod
    def revmap_lower(cls):
        '''
        Return a dict mapping {value.lower() : key}
        Only meaningful for enums with str values.
        '''
        return {x.value.lower() : x for x in cls}

class ReadOnlyDict(dict):
    '''
    dict that does not allow updates
    '''
    ro_error_class = TypeError
    ro_error_str = 'attempt to modify read-only dict'

    def _error_readonly(self, *args, **kwargs):
        '''
        This is used to replace methods of this object
        that would otherwise modify it.
        '''
        raise self.ro_error_class(self.ro_error_str)

    __delitem__ = _error_readonly
    __setitem__ = _error_readonly
    clear = _error_readonly
    pop = _error_readonly
    popitem = _error_readonly
    setdefault = _error_readonly
    update = _error_readonly

class ReadOnlyObject():
    '''
    Base for value objects that may not be updated after construction.
    Subclasses list their attributes in __slots__ and assign them
    in __init__ using _ro_init().
    '''
    __slots__ = ()

    ro_error_class = TypeError
    ro_error_str = 'attempt to modify read-only object'

    def _ro_init(self, **kwargs):
        '''
        Set attributes during construction. Not for use after __init__.
        '''
        for k, v in kwargs.items():
            object.__setattr__(self, k, v)

    def __setattr__(self, name, value):
        raise self.ro_error_class(self.ro_error_str)

    def __delattr__(self, name):
        raise self.ro_error_class(self.ro_error_str)

    def _ro_values(self):
        '''
        Return attribute values as a tuple in __slots__ order
        '''
        return tuple(getattr(self, k) for k in self.__slots__)

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self._ro_values() == other._ro_values()

    def __hash__(self):
        return hash((type(self).__name__,) + self._ro_values())

    def __repr__(self):
        args = ', '.join("%s=%r" % (k, getattr(self, k)) for k in self.__slots__)
        return "%s(%s)" % (type(self).__name__, args)

class PowerState(EnumMixin, enum.Enum):
    '''
    Power state of a virtual machine. Values here are the
    lower-case suffixes of the Azure 'PowerState/...' status codes.
    '''
    RUNNING = 'running'
    STOPPED = 'stopped'
    STOPPING = 'stopping'
    STARTING = 'starting'
    DEALLOCATING = 'deallocating'
    DEALLOCATED = 'deallocated'
    # Anything we cannot parse, including states Azure adds later.
    UNKNOWN = 'unknown'

class OperationStatus(EnumMixin, enum.Enum):
    '''
    Status of a long-running compute operation as reported by the poller.
    Values are the Azure-facing strings.
    '''
    IN_PROGRESS = 'InProgress'
    SUCCEEDED = 'Succeeded'
    FAILED = 'Failed'
    CANCELED = 'Canceled'
    UNKNOWN = 'Unknown'

    @classmethod
    def from_text(cls, txt):
        '''
        Map raw status text to a member. Case-insensitive.
        Absent or unrecognized text is UNKNOWN.
        '''
        if isinstance(txt, cls):
            return txt
        if not (isinstance(txt, str) and txt):
            return cls.UNKNOWN
        return cls.revmap_lower().get(txt.lower(), cls.UNKNOWN)
