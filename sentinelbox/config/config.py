import logging
import os

from configobj import ConfigObj, ConfigObjError, Section, flatten_errors
from configobj.validate import Validator

from sentinelbox.support.mixins import CommonEqualityMixin, StringerMixin

logger = logging.getLogger(__name__)

sentinel_configspec = """
master_name = string(default=None)
master_password = string(default=None)
sentinels = force_list(default=list())
failover_reconnect_timeout = float(min=0, default=None)
failover_reconnect_wait = float(min=0, default=0.1)
master_discovery_attempts = integer(min=1, default=2)
""".strip().splitlines()


class SentinelConfig(CommonEqualityMixin, StringerMixin):
    """
    The settings used to find and reconnect to the master through the sentinels.

    :param master_name: The name the sentinels know the master by.
    :param master_password: The password for the master, or None.
    :param sentinels: The sentinel endpoints, in the order they are tried first.
    :param failover_reconnect_timeout: How long, in seconds, to keep retrying while no master can be
        reached. None or 0 makes a single attempt.
    :param failover_reconnect_wait: The wait in seconds between retries. Defaults to 0.1.
    :param master_discovery_attempts: How many times each sentinel is tried in a single discovery pass.
        Defaults to 2.
    """
    _stringer_hidden = ('master_password',)

    option_names = ('master_name', 'master_password', 'sentinels', 'failover_reconnect_timeout',
                    'failover_reconnect_wait', 'master_discovery_attempts')

    option_aliases = {'master_discover_attempts': 'master_discovery_attempts'}

    def __init__(self, master_name=None, master_password=None, sentinels=None, failover_reconnect_timeout=None,
                 failover_reconnect_wait=0.1, master_discovery_attempts=2):
        self.master_name = master_name
        self.master_password = master_password
        self.sentinels = list(sentinels or [])
        self.failover_reconnect_timeout = failover_reconnect_timeout
        self.failover_reconnect_wait = failover_reconnect_wait
        self.master_discovery_attempts = master_discovery_attempts

    @classmethod
    def from_options(cls, options):
        """
        Removes the sentinel settings from a dictionary of client options and builds the config from them.
        What remains in the dictionary can be passed on to the connector for the master.
        Settings given as None take their default value.
        """
        values = dict()
        for key in list(options.keys()):
            name = cls.option_aliases.get(key, key)
            if name in cls.option_names:
                value = options.pop(key)
                if value is not None:
                    values[name] = value
        return cls(**values)


def load_config_file_base(file, must_exist=True, configspec=None):
    """
    Loads a configuration file
    :param file:        The configuration file to load
    :param must_exist:  when True, the file must exist or an exception is thrown.
    :param configspec:  the schema used to validate the file
    :return: The ConfigObj instance for the file.
    """
    if must_exist or os.path.exists(file):
        return ConfigObj(file, configspec=configspec, file_error=must_exist)
    return ConfigObj(configspec=configspec)


def apply_conf(conf: Section, target):
    """
    Applies the attributes contained in a configuration object to a target object.
    It does this by iterating over the items in the configuration and setting any attributes with the same name.
    """
    for k, v in conf.items():
        if hasattr(target, k):
            setattr(target, k, v)
    return target


def validate_config(config: ConfigObj):
    """
    Validates the config against its configspec, filling in defaults.
    Raises ConfigObjError listing the keys that failed.
    """
    result = config.validate(Validator(), preserve_errors=True)
    if result is not True:
        failures = []
        for section_list, key, res in flatten_errors(config, result):
            section = ', '.join(section_list) or 'top level'
            if key is not None:
                failures.append('the "%s" key in the section "%s" failed validation: %s' % (key, section, res))
            else:
                failures.append('the section "%s" is missing' % section)
        for failure in failures:
            logger.error(failure)
        raise ConfigObjError("the config failed validation: %s" % '; '.join(failures))
    return config


def load_sentinel_config(file, section='sentinel'):
    """
    Loads the sentinel settings from a section of a configuration file.

        [sentinel]
        master_name = mymaster
        sentinels = 10.0.0.1:26379, 10.0.0.2:26379
        failover_reconnect_timeout = 5

    :param file: The configuration file.
    :param section: The section holding the settings. When empty, the settings are read from the top level.
    :return: The SentinelConfig.
    """
    spec = ['[%s]' % section] + sentinel_configspec if section else sentinel_configspec
    config = validate_config(load_config_file_base(file, configspec=spec))
    return apply_conf(config[section] if section else config, SentinelConfig())
