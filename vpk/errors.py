class VPKError(Exception):
    """Base class for VPK-specific errors."""


# Directory or archive file missing/unopenable
class VPKOpenError(VPKError):
    pass


# Bad signature, unsupported version, truncated data
class VPKFormatError(VPKError):
    pass
