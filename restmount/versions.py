import logging
from collections import OrderedDict
from importlib import import_module

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

UNSTABLE = 'unstable'

STABLE_VERSIONS = ('2022-10', '2023-01')

LATEST_STABLE = STABLE_VERSIONS[-1]

BUNDLES = OrderedDict([
    ('2022-10', 'restmount.rest.v2022_10'),
    ('2023-01', 'restmount.rest.v2023_01'),
    (UNSTABLE, 'restmount.rest.unstable'),
])

_advised_versions = set()


def is_stable(version):
    return version in STABLE_VERSIONS


def check_version(version):
    """
    Returns ``version`` if resources are available for it. Logs a warning the first time an unstable version is
    used in this process.

    :raises ConfigurationError: if the version is not supported
    """
    if version not in BUNDLES:
        raise ConfigurationError('Unsupported API version "{}"; supported versions are {}'.format(
            version, ', '.join(BUNDLES)))

    if not is_stable(version) and version not in _advised_versions:
        _advised_versions.add(version)
        logger.warning('API version "%s" is not a stable release and may change without notice. '
                       'Migrate to a stable version (latest: %s) once the features you use are released.',
                       version, LATEST_STABLE)
    return version


def load_bundle(version):
    """
    Returns the resource classes of an API version.
    """
    module = import_module(BUNDLES[check_version(version)])
    return tuple(module.RESOURCES)
