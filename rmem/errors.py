
class RmemError(Exception):
    """ Base class for all rmem errors"""
    pass

class NameNotFound(RmemError):
    """ Raised when a name has no binding anywhere in the environment chain"""
    pass

class ImmutableTarget(RmemError):
    """ Raised when a mutation path is out of range or does not fit the value"""
    pass

class OutOfMemory(RmemError):
    """ Raised when an allocation still exceeds the memory limit after a collection"""

class InvalidValue(RmemError):
    """ Raised when an identity does not refer to a live value"""

class ArgumentError(RmemError):
    """ Raised when call arguments cannot be matched to a function's formals"""

class MissingArgument(RmemError):
    """ Raised when a missing argument without a default is used"""

class RmemSyntaxError(RmemError):
    """ Raised when a host command cannot be parsed"""

class InvalidName(RmemError):
    """ Raised when something other than a non-empty string is used as a name"""

class NotAFunction(RmemError):
    """ Raised when a call targets a value that is not a closure"""
