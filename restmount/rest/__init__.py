"""
Resource bundles, one module per API version. Each module lists its resources in ``RESOURCES``; see
:mod:`restmount.versions` for the mapping of versions to modules.
"""
