from enum import Enum


class Environment(str, Enum):
    """Environment profiles."""

    LOCAL = "local"
    TEST = "test"
    STAGING = "staging"
    PRODUCTION = "production"


class SubscriberKind(str, Enum):
    """Who a plan assignment or usage total belongs to."""

    USER = "user"
    TEAM = "team"
