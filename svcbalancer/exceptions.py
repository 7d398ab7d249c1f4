"""Hard-failure exceptions raised by the balancer.

Probe failures are not represented here: they degrade a status field to a
zero value and are only logged.
"""


class BalancerException(Exception):
    pass


class AuthorizationError(BalancerException):
    """The status request was rejected by the access check."""


class BalancerConfigException(BalancerException):
    pass


class BalancerCLIException(BalancerException):
    pass
